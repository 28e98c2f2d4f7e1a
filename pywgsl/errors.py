"""Error taxonomy — every failure the translator and GPU layer can raise."""


class PyWGSLError(Exception):
    pass


class DeviceUnavailable(PyWGSLError, RuntimeError):
    """No adapter/device could be acquired, or none is bound to the session."""

    GUIDANCE = (
        "Could not acquire a WebGPU adapter. Check that:\n"
        "  - a Vulkan, Metal or D3D12 capable driver is installed;\n"
        "  - the GPU is working and not held exclusively by another process;\n"
        "  - wgpu-native supports this platform (pip install -U wgpu)."
    )

    def __init__(self, reason: str = ""):
        message = self.GUIDANCE if not reason else f"{reason}\n{self.GUIDANCE}"
        super().__init__(message)
        self.reason = reason


class UnsupportedType(PyWGSLError, TypeError):
    pass


class MalformedSource(PyWGSLError, ValueError):
    pass


class UnknownLink(PyWGSLError, KeyError):
    def __str__(self):
        return str(self.args[0]) if self.args else ""


class UnknownVariable(PyWGSLError, KeyError):
    def __str__(self):
        return str(self.args[0]) if self.args else ""


class CompileError(PyWGSLError):
    """The shader module or compute pipeline was rejected by the device."""


class LayoutMismatch(PyWGSLError):
    """A bind-group layout no longer matches the registered buffer set."""
