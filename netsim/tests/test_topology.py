import unittest

from netsim import NetworkSim
from netsim.errors import AddressError, ConfigError, DuplicateAddressError, UnknownDeviceError, UnknownInterfaceError
from netsim.topology import DeviceKind, LinkEnd, LinkState, Media


class TestProvisioning(unittest.TestCase):
    def test_router_interfaces(self):
        sim = NetworkSim()
        r = sim.create_device("router")
        self.assertEqual(
            [i.name for i in r.interfaces],
            ["FastEthernet0/0", "FastEthernet0/1", "Serial0/0/0", "Serial0/0/1"],
        )
        self.assertEqual([i.media for i in r.interfaces], [Media.ETHERNET, Media.ETHERNET, Media.SERIAL, Media.SERIAL])

    def test_switch_ports(self):
        sim = NetworkSim()
        sw = sim.create_device("switch")
        self.assertEqual(len(sw.interfaces), 24)
        self.assertEqual(sw.interfaces[0].name, "FastEthernet0/1")
        self.assertEqual(sw.interfaces[-1].name, "FastEthernet0/24")

    def test_endpoints_get_one_interface(self):
        sim = NetworkSim()
        for kind in ("host", "server", "Laptop", "PC"):
            dev = sim.create_device(kind)
            self.assertEqual([i.name for i in dev.interfaces], ["FastEthernet0"])
            self.assertFalse(dev.is_router)

    def test_labels_and_default_names(self):
        sim = NetworkSim()
        pc = sim.create_device("host")
        lap = sim.create_device("Laptop")
        srv = sim.create_device("server")
        self.assertEqual((pc.label, pc.name), ("PC", "PC-01"))
        self.assertEqual((lap.kind, lap.label, lap.name), (DeviceKind.HOST, "Laptop", "Laptop-02"))
        self.assertEqual((srv.label, srv.name), ("Server", "Server-03"))

    def test_unknown_kind_rejected(self):
        sim = NetworkSim()
        with self.assertRaises(ConfigError):
            sim.create_device("hub")
        with self.assertRaises(ConfigError):
            sim.create_device("router", label="Laptop")

    def test_ids_are_never_reused(self):
        sim = NetworkSim()
        a = sim.create_device("host")
        b = sim.create_device("host")
        self.assertTrue(sim.remove_device(b.id))
        c = sim.create_device("host")
        self.assertEqual((a.id, b.id, c.id), (1, 2, 3))

    def test_remove_unknown_device(self):
        sim = NetworkSim()
        self.assertFalse(sim.remove_device(42))


class TestCabling(unittest.TestCase):
    def setUp(self):
        self.sim = NetworkSim()
        self.pc = self.sim.create_device("host")
        self.r = self.sim.create_device("router")
        self.sw = self.sim.create_device("switch")

    def test_connect_is_symmetric(self):
        self.assertTrue(self.sim.connect(self.pc.id, "FastEthernet0", self.r.id, "FastEthernet0/0"))
        a = self.pc.get_interface("FastEthernet0")
        b = self.r.get_interface("FastEthernet0/0")
        self.assertEqual(a.peer, LinkEnd(self.r.id, "FastEthernet0/0"))
        self.assertEqual(b.peer, LinkEnd(self.pc.id, "FastEthernet0"))
        self.assertEqual((a.link_state, b.link_state), (LinkState.DOWN, LinkState.DOWN))

    def test_connect_refuses_busy_interface(self):
        self.assertTrue(self.sim.connect(self.pc.id, "FastEthernet0", self.r.id, "FastEthernet0/0"))
        self.assertFalse(self.sim.connect(self.sw.id, "FastEthernet0/1", self.r.id, "FastEthernet0/0"))
        self.assertIsNone(self.sw.get_interface("FastEthernet0/1").peer)
        self.assertEqual(self.r.get_interface("FastEthernet0/0").peer.device_id, self.pc.id)

    def test_connect_refuses_bad_ends(self):
        self.assertFalse(self.sim.connect(self.pc.id, "FastEthernet0", 99, "FastEthernet0/0"))
        self.assertFalse(self.sim.connect(self.pc.id, "Gig0/0", self.r.id, "FastEthernet0/0"))
        self.assertFalse(self.sim.connect(self.r.id, "FastEthernet0/0", self.r.id, "FastEthernet0/1"))
        self.assertEqual(self.sim.topology.links(), [])

    def test_disconnect_clears_both_ends(self):
        self.sim.connect(self.pc.id, "FastEthernet0", self.r.id, "FastEthernet0/0")
        self.assertTrue(self.sim.disconnect(self.r.id, "FastEthernet0/0", self.pc.id, "FastEthernet0"))
        self.assertIsNone(self.pc.interfaces[0].peer)
        self.assertIsNone(self.r.interfaces[0].peer)
        self.assertFalse(self.sim.disconnect(self.r.id, "FastEthernet0/0", self.pc.id, "FastEthernet0"))

    def test_disconnect_interface(self):
        self.sim.connect(self.pc.id, "FastEthernet0", self.sw.id, "FastEthernet0/3")
        self.assertTrue(self.sim.disconnect_interface(self.sw.id, "FastEthernet0/3"))
        self.assertFalse(self.sim.disconnect_interface(self.sw.id, "FastEthernet0/3"))
        with self.assertRaises(UnknownInterfaceError):
            self.sim.disconnect_interface(self.sw.id, "FastEthernet0/99")

    def test_remove_device_severs_links(self):
        self.sim.connect(self.pc.id, "FastEthernet0", self.sw.id, "FastEthernet0/1")
        self.sim.connect(self.r.id, "FastEthernet0/0", self.sw.id, "FastEthernet0/2")
        self.sim.remove_device(self.sw.id)
        self.assertIsNone(self.pc.interfaces[0].peer)
        self.assertIsNone(self.r.interfaces[0].peer)
        self.assertEqual(self.sim.topology.links(), [])
        self.assertEqual(self.sim.topology.adjacency(), {self.pc.id: [], self.r.id: []})

    def test_parallel_cables_collapse_in_adjacency(self):
        r2 = self.sim.create_device("router")
        self.sim.connect(self.r.id, "Serial0/0/0", r2.id, "Serial0/0/0")
        self.sim.connect(self.r.id, "Serial0/0/1", r2.id, "Serial0/0/1")
        self.assertEqual(len(self.sim.topology.links()), 2)
        self.assertEqual(self.sim.topology.adjacency()[self.r.id], [r2.id])

    def test_media_mismatch_is_allowed_but_flagged(self):
        self.assertTrue(self.sim.connect(self.pc.id, "FastEthernet0", self.r.id, "Serial0/0/0"))
        self.assertEqual(len(self.sim.media_mismatches()), 1)
        self.assertEqual(len(self.sim.session.of_kind("media_mismatch")), 1)


class TestAddressing(unittest.TestCase):
    def setUp(self):
        self.sim = NetworkSim()
        self.pc = self.sim.create_device("host")
        self.r = self.sim.create_device("router")
        self.sw = self.sim.create_device("switch")

    def test_configure_and_clear(self):
        self.sim.configure_host(self.pc.id, "10.0.0.5", "255.255.255.0", "10.0.0.1")
        self.assertEqual((self.pc.address, self.pc.mask, self.pc.gateway), ("10.0.0.5", "255.255.255.0", "10.0.0.1"))
        self.sim.configure_interface(self.pc.id, "FastEthernet0", "", "")
        self.assertEqual(self.pc.address, "")
        self.assertFalse(self.pc.interfaces[0].has_address())

    def test_switch_ports_take_no_address(self):
        with self.assertRaises(ConfigError):
            self.sim.configure_interface(self.sw.id, "FastEthernet0/1", "10.0.0.2", "255.255.255.0")

    def test_malformed_values(self):
        for addr in ("192.168.1", "256.1.1.1", "a.b.c.d", "1.2.3.4.5"):
            with self.assertRaises(AddressError):
                self.sim.configure_interface(self.r.id, "FastEthernet0/0", addr, "255.255.255.0")
        with self.assertRaises(AddressError):
            self.sim.configure_interface(self.r.id, "FastEthernet0/0", "10.0.0.1", "255.0.255.0")
        self.assertEqual(self.r.interfaces[0].address, "")

    def test_address_needs_mask(self):
        with self.assertRaises(ConfigError):
            self.sim.configure_interface(self.r.id, "FastEthernet0/0", "10.0.0.1", "")

    def test_duplicate_address(self):
        self.sim.configure_interface(self.r.id, "FastEthernet0/0", "10.0.0.1", "255.255.255.0")
        with self.assertRaises(DuplicateAddressError):
            self.sim.configure_host(self.pc.id, "10.0.0.1", "255.255.255.0")
        # re-applying to the same interface is fine
        self.sim.configure_interface(self.r.id, "FastEthernet0/0", "10.0.0.1", "255.255.255.252")
        self.assertEqual(self.r.interfaces[0].mask, "255.255.255.252")

    def test_bad_gateway_leaves_host_untouched(self):
        self.sim.configure_host(self.pc.id, "10.0.0.5", "255.255.255.0", "10.0.0.1")
        with self.assertRaises(AddressError):
            self.sim.configure_host(self.pc.id, "192.168.7.5", "255.255.255.0", "192.168.7")
        self.assertEqual((self.pc.address, self.pc.mask, self.pc.gateway), ("10.0.0.5", "255.255.255.0", "10.0.0.1"))

    def test_bad_address_leaves_gateway_untouched(self):
        self.sim.configure_host(self.pc.id, "10.0.0.5", "255.255.255.0", "10.0.0.1")
        with self.assertRaises(AddressError):
            self.sim.configure_host(self.pc.id, "10.0.0", "255.255.255.0", "10.0.0.254")
        self.assertEqual((self.pc.address, self.pc.gateway), ("10.0.0.5", "10.0.0.1"))

    def test_gateway_rules(self):
        with self.assertRaises(ConfigError):
            self.sim.set_gateway(self.r.id, "10.0.0.1")
        with self.assertRaises(ConfigError):
            self.sim.configure_host(self.r.id, "10.0.0.1", "255.255.255.0")
        with self.assertRaises(AddressError):
            self.sim.set_gateway(self.pc.id, "10.0.0")
        self.sim.set_gateway(self.pc.id, "")
        self.assertEqual(self.pc.gateway, "")

    def test_unknown_targets(self):
        with self.assertRaises(UnknownDeviceError):
            self.sim.configure_interface(77, "FastEthernet0", "10.0.0.1", "255.255.255.0")
        with self.assertRaises(UnknownInterfaceError):
            self.sim.configure_interface(self.r.id, "Gig0/0", "10.0.0.1", "255.255.255.0")

    def test_router_addresses_all_interfaces(self):
        self.sim.configure_interface(self.r.id, "FastEthernet0/1", "10.1.0.1", "255.255.0.0")
        self.sim.configure_interface(self.r.id, "Serial0/0/0", "10.2.0.1", "255.255.255.252")
        self.assertEqual([i.name for i in self.r.addressed_interfaces()], ["FastEthernet0/1", "Serial0/0/0"])
        # legacy single-address view follows the first interface
        self.assertEqual(self.r.address, "")

    def test_find_device(self):
        self.sim.rename_device(self.pc.id, "Alice")
        self.assertIs(self.sim.find_device("alice"), self.pc)
        self.assertIs(self.sim.find_device(str(self.r.id)), self.r)
        self.assertIs(self.sim.find_device(self.sw.id), self.sw)
        self.assertIsNone(self.sim.find_device("bob"))


if __name__ == "__main__":
    unittest.main()
