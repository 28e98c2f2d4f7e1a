import os
import subprocess
import sys
import tempfile
import unittest

from tests.test_support import run_cli


class EntryCliTests(unittest.TestCase):
    def test_emit_tokens_demo(self):
        proc = subprocess.run(
            [sys.executable, "-m", "pywgsl.entry", "--emit", "tokens", "--demo"],
            text=True,
            capture_output=True,
            check=True,
        )
        self.assertIn("['function', 'add', '(', 'a', ',', 'b', ')', '{']", proc.stdout)

    def test_emit_wgsl_demo(self):
        code, out, _ = run_cli(["--emit", "wgsl", "--demo"])
        self.assertEqual(code, 0)
        lines = out.splitlines()
        self.assertEqual(lines[0],
                         "@group(0) @binding(0) var<storage, read_write> myBuffer : array<f32>;")
        self.assertEqual(lines[1],
                         "@group(0) @binding(1) var<storage, read_write> myBuffer2 : array<f32>;")
        self.assertIn("fn add(a: f32, b: f32) -> f32 {", lines)
        self.assertIn("var c: f32 = 5.0;", lines)
        self.assertIn("@compute @workgroup_size(1) fn main_kernel("
                      "@builtin(global_invocation_id) id: vec3<u32>) {", lines)

    def test_workgroup_size_and_types(self):
        code, out, _ = run_cli(["--demo", "--workgroup-size", "4,2",
                                "--return-type", "i32", "--param-type", "i32"])
        self.assertEqual(code, 0)
        self.assertIn("fn add(a: i32, b: i32) -> i32 {", out)
        self.assertIn("@workgroup_size(8)", out)

    def test_source_file(self):
        with tempfile.NamedTemporaryFile("w", suffix=".js", delete=False) as f:
            f.write("function scale() {\n  let k = [1, 2];\n}\n")
        try:
            code, out, _ = run_cli([f.name])
        finally:
            os.unlink(f.name)
        self.assertEqual(code, 0)
        self.assertIn("var k: array<f32,2> = array(1,2) ;", out)

    def test_legacy_flag(self):
        with tempfile.NamedTemporaryFile("w", suffix=".js", delete=False) as f:
            f.write("function scale() {\n  let k = [1, 2]; let j = 3;\n}\n")
        try:
            code, out, _ = run_cli([f.name, "--legacy"])
        finally:
            os.unlink(f.name)
        self.assertEqual(code, 0)
        self.assertIn("var k: array<f32,2> = array(1,2)\n", out)

    def test_malformed_source_reports_error(self):
        with tempfile.NamedTemporaryFile("w", suffix=".js", delete=False) as f:
            f.write("function broken(a {\n}\n")
        try:
            code, _, err = run_cli([f.name])
        finally:
            os.unlink(f.name)
        self.assertEqual(code, 1)
        self.assertTrue(err.startswith("Error:"))

    def test_bad_input_spec(self):
        code, _, err = run_cli(["--demo", "--input", "novalues"])
        self.assertEqual(code, 1)
        self.assertIn("NAME=v1,v2", err)


if __name__ == "__main__":
    unittest.main()
