"""Models describing the device a test run executes on."""

from collections.abc import Mapping

from pydantic import Field

from medivac.models.base import Model

PLATFORM_ALIASES: Mapping[str, str] = {
    "ipod touch": "ios",
    "iphone": "ios",
}


def normalize_platform(platform: str) -> str:
    """Map a reported platform name onto the name used in result documents."""
    key = platform.lower()
    return PLATFORM_ALIASES.get(key, key)


class DeviceInfo(Model):
    """Properties of the device plugin, as reported once the device is ready."""

    platform: str
    model: str | None = None
    name: str | None = None
    version: str = ""
    uuid: str | None = None


class DeviceReady(Model):
    """Host runtime readiness signal, optionally carrying the device."""

    device: DeviceInfo | None = None
    cordova_version: str = Field(default="", alias="cordovaVersion")

    @property
    def platform(self) -> str:
        """Normalized platform name, ``desktop`` when no device is present."""
        if self.device is None:
            return "desktop"
        return normalize_platform(self.device.platform)

    @property
    def device_model(self) -> str:
        """Device model, falling back to its name."""
        if self.device is None:
            return "none"
        return self.device.model or self.device.name or "none"

    @property
    def app_version(self) -> str:
        """OS version of the device, or the Cordova version off-device."""
        if self.device is None:
            return self.cordova_version
        return self.device.version.lower()
