"""Adapter/device acquisition through wgpu-py."""

import logging

import wgpu

from .errors import DeviceUnavailable

logger = logging.getLogger(__name__)


def _describe(adapter) -> str:
    info = getattr(adapter, "info", None) or {}
    return info.get("device", "") or info.get("description", "") or "unknown device"


def acquire_adapter(power_preference: str = "high-performance"):
    try:
        adapter = wgpu.gpu.request_adapter_sync(power_preference=power_preference)
    except Exception as e:
        raise DeviceUnavailable(f"Adapter request failed: {e}") from e
    if adapter is None:
        raise DeviceUnavailable("No compatible adapter found")
    return adapter


def acquire_device(power_preference: str = "high-performance"):
    adapter = acquire_adapter(power_preference)
    try:
        device = adapter.request_device_sync()
    except Exception as e:
        raise DeviceUnavailable(f"Device request failed: {e}") from e
    logger.info("using GPU: %s", _describe(adapter))
    return device


async def acquire_device_async(power_preference: str = "high-performance"):
    try:
        adapter = await wgpu.gpu.request_adapter_async(power_preference=power_preference)
    except Exception as e:
        raise DeviceUnavailable(f"Adapter request failed: {e}") from e
    if adapter is None:
        raise DeviceUnavailable("No compatible adapter found")
    try:
        device = await adapter.request_device_async()
    except Exception as e:
        raise DeviceUnavailable(f"Device request failed: {e}") from e
    logger.info("using GPU: %s", _describe(adapter))
    return device
