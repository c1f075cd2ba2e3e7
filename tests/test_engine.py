import threading
import unittest

from yarn_mapper.mapping.engine import map_text, apply_table, substitute, METHOD_RE
from yarn_mapper.mapping.store import MappingTable, VersionRegistry


def _registry() -> VersionRegistry:
    reg = VersionRegistry()
    reg.register("1.16.1")
    reg.record_class("1.16.1", "net/minecraft/class_1", "net/minecraft/entity/MyEntity")
    reg.record_class("1.16.1", "net/minecraft/class_310", "net/minecraft/client/MinecraftClient")
    reg.record_method("1.16.1", "method_42", "tick")
    reg.record_method("1.16.1", "method_1", "run")
    reg.record_field("1.16.1", "field_91", "world")
    return reg


class TestEngine(unittest.TestCase):
    def setUp(self):
        self.reg = _registry()

    def test_method_example(self):
        self.assertEqual(map_text(self.reg, "1.16.1", "call method_42 now"), "call tick now")

    def test_round_trip_full_and_short_class(self):
        self.assertEqual(map_text(self.reg, "1.16.1", "net.minecraft.class_1"), "net.minecraft.entity.MyEntity")
        self.assertEqual(map_text(self.reg, "1.16.1", "class_1"), "MyEntity")

    def test_identity_without_tokens(self):
        text = "[12:00:01] [main/INFO]: Loading 42 mods\n\tat java.lang.Thread.run(Thread.java:748)\n"
        self.assertEqual(map_text(self.reg, "1.16.1", text), text)
        self.assertEqual(map_text(self.reg, "1.16.1", ""), "")

    def test_unknown_version(self):
        self.assertIsNone(map_text(self.reg, "1.99", "method_42"))
        self.assertIsNone(map_text(self.reg, "1.16", "nothing to map"))

    def test_all_occurrences_replaced(self):
        out = map_text(self.reg, "1.16.1", "method_42 then method_42 and method_42")
        self.assertEqual(out, "tick then tick and tick")

    def test_unmapped_tokens_left_verbatim(self):
        text = "class_999999 method_7 field_3 net.minecraft.class_555"
        self.assertEqual(map_text(self.reg, "1.16.1", text), text)

    def test_leading_zero_not_matched(self):
        self.reg.record_method("1.16.1", "method_042", "never")
        self.assertEqual(map_text(self.reg, "1.16.1", "method_042"), "method_042")

    def test_prefix_token_not_rewritten(self):
        # method_42 is mapped, method_420 is not
        self.assertEqual(map_text(self.reg, "1.16.1", "method_420 method_42"), "method_420 tick")

    def test_stack_trace_line(self):
        line = "\tat net.minecraft.class_310.method_1(class_310.java:12) field_91"
        out = map_text(self.reg, "1.16.1", line)
        self.assertEqual(out, "\tat net.minecraft.client.MinecraftClient.run(MinecraftClient.java:12) world")

    def test_determinism(self):
        outs = {map_text(self.reg, "1.16.1", "field_91") for _ in range(5)}
        self.assertEqual(outs, {"world"})

    def test_replacement_is_literal(self):
        t = MappingTable()
        t.record_method("method_5", r"weird\1$0\g<0>")
        self.assertEqual(apply_table("x method_5 y", t), r"x weird\1$0\g<0> y")

    def test_passes_compose_in_order(self):
        # passes run in sequence: a later pass sees what an earlier one wrote
        t = MappingTable()
        t.record_method("method_5", "field_6")
        t.record_field("field_6", "other")
        self.assertEqual(apply_table("method_5", t), "other")
        self.assertEqual(substitute("method_5", METHOD_RE, t.methods), "field_6")

    def test_inner_class_full_name(self):
        self.reg.record_class("1.16.1", "net/minecraft/class_1$class_2", "net/minecraft/entity/MyEntity$Inner")
        self.assertEqual(
            map_text(self.reg, "1.16.1", "net.minecraft.class_1$class_2"),
            "net.minecraft.entity.MyEntity$Inner",
        )
        # the outer short name is not overwritten by the inner record
        self.assertEqual(map_text(self.reg, "1.16.1", "class_1"), "MyEntity")

    def test_inner_class_number_alone_is_not_short_mapped(self):
        self.reg.record_class("1.16.1", "net/minecraft/class_1$class_2", "net/minecraft/entity/MyEntity$Inner")
        self.assertNotIn("class_2", self.reg.get("1.16.1").short_classes)
        self.assertEqual(map_text(self.reg, "1.16.1", "class_2 in MyEntity"), "class_2 in MyEntity")

    def test_unmapped_inner_class_keeps_mapped_outer(self):
        out = map_text(self.reg, "1.16.1", "net.minecraft.class_1$class_8 and net.minecraft.class_1$1")
        self.assertEqual(out, "net.minecraft.entity.MyEntity$class_8 and net.minecraft.entity.MyEntity$1")

    def test_table_not_mutated(self):
        before = self.reg.get("1.16.1").size()
        map_text(self.reg, "1.16.1", "net.minecraft.class_1 method_42 class_1 field_91")
        self.assertEqual(self.reg.get("1.16.1").size(), before)

    def test_concurrent_publish_never_partial(self):
        text = "net.minecraft.class_1 method_42 class_1 field_91"
        full = "net.minecraft.entity.MyEntity tick MyEntity world"
        reg = VersionRegistry()
        reg.register("1.16.1")
        seen = set()
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                seen.add(map_text(reg, "1.16.1", text))

        def build() -> MappingTable:
            t = MappingTable()
            t.record_class("net.minecraft.class_1", "net.minecraft.entity.MyEntity")
            t.record_method("method_42", "tick")
            t.record_field("field_91", "world")
            return t

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for th in threads:
            th.start()
        for _ in range(200):
            reg.publish("1.16.1", MappingTable())
            reg.publish("1.16.1", build())
        stop.set()
        for th in threads:
            th.join()
        self.assertTrue(seen <= {text, full}, seen)


if __name__ == "__main__":
    unittest.main()
