import asyncio
import unittest

import numpy as np

from pywgsl.buffers import BufferManager
from pywgsl.dispatch import CommandDispatcher, normalize_counts
from pywgsl.errors import CompileError, LayoutMismatch
from pywgsl.pipeline import PipelineBuilder
from tests.test_support import FakeDevice, doubling_kernel

SHADER = "@compute @workgroup_size(1) fn main() {}\n"


class PipelineBuilderTests(unittest.TestCase):
    def setUp(self):
        self.device = FakeDevice()
        self.buffers = BufferManager(self.device)
        self.buffers.register_input("myBuffer", np.zeros(4, dtype=np.float32))

    def test_compile_builds_artifact(self):
        layout = self.buffers.build_bind_group_layout()
        artifact = PipelineBuilder(self.device).compile(SHADER, "main", layout,
                                                        self.buffers.signature())
        self.assertEqual(self.device.shader_modules[0].code, SHADER)
        self.assertEqual(artifact.pipeline.compute["entry_point"], "main")
        self.assertEqual(artifact.pipeline_layout.bind_group_layouts, list(layout.handles))
        self.assertTrue(artifact.matches(SHADER, "main", self.buffers.signature()))
        self.assertFalse(artifact.matches(SHADER + " ", "main", self.buffers.signature()))

    def test_compile_error_carries_diagnostic(self):
        device = FakeDevice(compile_error="unknown identifier 'foo'")
        buffers = BufferManager(device)
        buffers.register_input("x", np.zeros(1, dtype=np.float32))
        with self.assertRaises(CompileError) as ctx:
            PipelineBuilder(device).compile(SHADER, "main", buffers.build_bind_group_layout(),
                                            buffers.signature())
        self.assertIn("unknown identifier 'foo'", str(ctx.exception))

    def test_stale_layout(self):
        layout = self.buffers.build_bind_group_layout()
        self.buffers.register_input("other", np.zeros(4, dtype=np.float32))
        with self.assertRaises(LayoutMismatch):
            PipelineBuilder(self.device).compile(SHADER, "main", layout, self.buffers.signature())


class DispatcherTests(unittest.TestCase):
    def setUp(self):
        self.device = FakeDevice(kernel=doubling_kernel)
        self.buffers = BufferManager(self.device)
        self.data = np.array([0, -1, -2, -3], dtype=np.float32)
        self.buffers.register_input("myBuffer", self.data)
        self.buffers.register_output("result", "myBuffer", self.data)
        layout = self.buffers.build_bind_group_layout()
        self.artifact = PipelineBuilder(self.device).compile(SHADER, "main", layout,
                                                             self.buffers.signature())
        self.bind_groups = self.buffers.build_bind_group(layout)
        self.dispatcher = CommandDispatcher(self.device, self.buffers)

    def test_execute_and_read_back(self):
        self.dispatcher.execute(self.artifact, self.bind_groups, 4)
        results = self.dispatcher.read_back()
        np.testing.assert_array_equal(results["result"], [0, -2, -4, -6])
        self.assertEqual(results["result"].dtype, np.float32)

    def test_read_back_async(self):
        self.dispatcher.execute(self.artifact, self.bind_groups, 4)
        results = asyncio.run(self.dispatcher.read_back_async())
        np.testing.assert_array_equal(results["result"], [0, -2, -4, -6])

    def test_buffers_are_unmapped_after_read(self):
        self.dispatcher.execute(self.artifact, self.bind_groups, 4)
        self.dispatcher.read_back()
        self.assertFalse(self.buffers.outputs()[0].buffer.mapped)

    def test_read_back_before_execute(self):
        with self.assertRaises(RuntimeError):
            self.dispatcher.read_back()

    def test_repeated_dispatch_reads_latest_results(self):
        self.dispatcher.execute(self.artifact, self.bind_groups, 4)
        self.dispatcher.execute(self.artifact, self.bind_groups, 4)
        np.testing.assert_array_equal(self.dispatcher.read_back()["result"], [0, -4, -8, -12])

    def test_every_group_is_bound_at_its_index(self):
        device = FakeDevice()
        buffers = BufferManager(device)
        buffers.register_input("a", self.data)
        buffers.register_input("b", self.data, group=1)
        layout = buffers.build_bind_group_layout()
        artifact = PipelineBuilder(device).compile(SHADER, "main", layout, buffers.signature())
        self.assertEqual(len(artifact.pipeline_layout.bind_group_layouts), 2)
        bind_groups = buffers.build_bind_group(layout)
        CommandDispatcher(device, buffers).execute(artifact, bind_groups, 1)
        self.assertEqual(device.passes[0].bind_groups, {0: bind_groups[0], 1: bind_groups[1]})

    def test_normalize_counts(self):
        self.assertEqual(normalize_counts(4), (4,))
        self.assertEqual(normalize_counts([2, 2]), (2, 2))
        for bad in (0, [], [1, 1, 1, 1], [2.0]):
            with self.subTest(counts=bad):
                with self.assertRaises(ValueError):
                    normalize_counts(bad)


if __name__ == "__main__":
    unittest.main()
