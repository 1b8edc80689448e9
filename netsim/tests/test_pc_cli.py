import unittest

from netsim import NetworkSim, PCCLIEngine


class TestPCCLI(unittest.TestCase):
    def setUp(self):
        sim = NetworkSim()
        self.pc1 = sim.create_device("host", name="PC1")
        self.r1 = sim.create_device("router", name="R1")
        self.pc2 = sim.create_device("host", name="PC2")
        sim.connect(self.pc1.id, "FastEthernet0", self.r1.id, "FastEthernet0/0")
        sim.connect(self.r1.id, "FastEthernet0/1", self.pc2.id, "FastEthernet0")
        sim.configure_interface(self.r1.id, "FastEthernet0/0", "192.168.1.1", "255.255.255.0")
        sim.configure_interface(self.r1.id, "FastEthernet0/1", "192.168.2.1", "255.255.255.0")
        sim.scheduler.advance(2000)
        self.sim = sim

        self.cli = PCCLIEngine(sim)
        self.c1 = self.cli.new_context(self.pc1.id)
        self.c2 = self.cli.new_context(self.pc2.id)
        self.cli.execute(self.c1, "ip 192.168.1.10 255.255.255.0 192.168.1.1")
        self.cli.execute(self.c2, "ipconfig 192.168.2.10 255.255.255.0")
        self.cli.execute(self.c2, "gateway 192.168.2.1")

    def test_prompt(self):
        self.assertEqual(self.cli.execute(self.c1, "").prompt, "PC1> ")

    def test_show(self):
        out = self.cli.execute(self.c1, "show").output
        self.assertIn("IP Address: 192.168.1.10", out)
        self.assertIn("Default Gateway: 192.168.1.1", out)
        self.assertIn("Link: up", out)

    def test_ping_by_name_and_address(self):
        out = self.cli.execute(self.c1, "ping PC2").output
        self.assertIn("Reply from 192.168.2.10", out)
        out = self.cli.execute(self.c1, "ping 192.168.2.10").output
        self.assertIn("Reply from 192.168.2.10", out)
        self.assertEqual(len(self.sim.ping_history()), 2)

    def test_ping_router_interface_address(self):
        out = self.cli.execute(self.c1, "ping 192.168.2.1").output
        self.assertIn("Reply from 192.168.1.1", out)

    def test_ping_unknown(self):
        self.assertEqual(self.cli.execute(self.c1, "ping 192.168.9.9").output, "% Unknown destination.")
        self.assertEqual(self.cli.execute(self.c1, "ping nobody").output, "% Unknown destination.")
        self.assertTrue(self.cli.execute(self.c1, "ping").output.startswith("% Usage"))

    def test_ping_failure_message(self):
        self.cli.execute(self.c2, "gateway 10.9.9.9")
        out = self.cli.execute(self.c2, "ping PC1").output
        self.assertEqual(out, "Error: default gateway unreachable")

    def test_traceroute(self):
        out = self.cli.execute(self.c1, "tracert PC2").output
        self.assertIn("192.168.1.1  [R1]", out)
        self.assertIn("192.168.2.10  [PC2]", out)

    def test_route(self):
        out = self.cli.execute(self.c1, "route").output
        self.assertIn("192.168.1.0/24", out)
        self.assertIn("via 192.168.1.1", out)

    def test_errors_are_rendered(self):
        out = self.cli.execute(self.c1, "ip 192.168.1 255.255.255.0").output
        self.assertTrue(out.startswith("% Invalid IPv4 address"))
        out = self.cli.execute(self.c1, "ip 192.168.1.1 255.255.255.0").output
        self.assertTrue(out.startswith("% Address 192.168.1.1 is already assigned to R1"))
        rc = self.cli.new_context(self.r1.id)
        self.assertIn("configure its interfaces instead", self.cli.execute(rc, "ip 10.0.0.1 255.0.0.0").output)

    def test_bad_gateway_rejects_whole_command(self):
        out = self.cli.execute(self.c1, "ip 10.0.0.5 255.255.255.0 10.0.0").output
        self.assertTrue(out.startswith("% Invalid gateway address"))
        show = self.cli.execute(self.c1, "show").output
        self.assertIn("IP Address: 192.168.1.10", show)
        self.assertIn("Default Gateway: 192.168.1.1", show)

    def test_help_exit_unknown(self):
        self.assertIn("ping <device|ip>", self.cli.execute(self.c1, "?").output)
        self.assertEqual(self.cli.execute(self.c1, "exit").output, "__CLOSE__")
        self.assertEqual(self.cli.execute(self.c1, "frobnicate").output, "% Unknown command.")

    def test_removed_device(self):
        self.sim.remove_device(self.pc1.id)
        self.assertEqual(self.cli.execute(self.c1, "show").output, "% Device not found.")


if __name__ == "__main__":
    unittest.main()
