import unittest

from pywgsl.codegen_entry import EntryPointGenerator, normalize_workgroup_size
from pywgsl.tokenizer import Tokenizer
from pywgsl.types import Scalar


MAIN = """
function main_kernel() {
    let i = id.x;
    myBuffer[i] = myBuffer[i] * 2;
}
"""


class EntryCodegenTests(unittest.TestCase):
    def generate(self, source=MAIN, types=None, workgroup_size=1, replay=False):
        types = {} if types is None else types
        gen = EntryPointGenerator(types, workgroup_size, replay=replay)
        return gen.generate(Tokenizer().tokenize(source)), types

    def test_entry_declaration(self):
        out, _ = self.generate()
        self.assertEqual(
            out[0],
            "@compute @workgroup_size(1) fn main_kernel("
            "@builtin(global_invocation_id) id: vec3<u32>) {",
        )

    def test_body_translation(self):
        out, types = self.generate()
        self.assertEqual(out[1], "var i: u32 = id.x;")
        self.assertEqual(out[2], "myBuffer [ i ] = myBuffer [ i ] * 2;")
        self.assertEqual(out[3], "}")
        self.assertEqual(types, {"i": Scalar("u32")})

    def test_replay_after_edit(self):
        _, types = self.generate()
        types["i"] = Scalar("i32")
        out, _ = self.generate(types=types, replay=True)
        self.assertEqual(out[1], "var i: i32 = id.x;")

    def test_workgroup_size_is_the_product(self):
        out, _ = self.generate(workgroup_size=(8, 4, 2))
        self.assertTrue(out[0].startswith("@compute @workgroup_size(64) fn main_kernel("))

    def test_declared_params_precede_invocation_id(self):
        source = "function k(n) {\n}"
        out, _ = self.generate(source, types={"n": Scalar("u32")})
        self.assertEqual(
            out[0],
            "@compute @workgroup_size(1) fn k(n: u32, "
            "@builtin(global_invocation_id) id: vec3<u32>) {",
        )


class WorkgroupSizeTests(unittest.TestCase):
    def test_padding(self):
        self.assertEqual(normalize_workgroup_size(4), (4, 1, 1))
        self.assertEqual(normalize_workgroup_size([2, 3]), (2, 3, 1))

    def test_invalid_sizes(self):
        for size in (0, -1, [], [1, 2, 3, 4], [1.5], True):
            with self.subTest(size=size):
                with self.assertRaises(ValueError):
                    normalize_workgroup_size(size)


if __name__ == "__main__":
    unittest.main()
