"""
Server Certificate Verification Policy

Tagged value replacing a loose ``bool | str`` verify flag: verification is
either enabled against the default trust store, disabled, or pinned to a
custom CA bundle.
"""
from enum import Enum
from typing import Optional, Union
from pydantic import BaseModel, model_validator


DISABLED_KEYWORDS = frozenset({"false", "0", "off", "no"})
ENABLED_KEYWORDS = frozenset({"true", "1", "on", "yes"})


class VerifyMode(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"
    CUSTOM_BUNDLE = "custom_bundle"


class VerifyPolicy(BaseModel):
    """
    How the transport verifies the gateway's server certificate.

    Build with the named constructors rather than by hand:

        VerifyPolicy.enabled()
        VerifyPolicy.disabled()
        VerifyPolicy.custom_bundle("/etc/ssl/gateway-ca.pem")
    """

    mode: VerifyMode = VerifyMode.ENABLED
    ca_bundle: Optional[str] = None

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @model_validator(mode="after")
    def bundle_matches_mode(self) -> "VerifyPolicy":
        if self.mode is VerifyMode.CUSTOM_BUNDLE and not self.ca_bundle:
            raise ValueError("custom_bundle verification requires a CA bundle path")
        if self.mode is not VerifyMode.CUSTOM_BUNDLE and self.ca_bundle is not None:
            raise ValueError(f"ca_bundle is only valid with mode={VerifyMode.CUSTOM_BUNDLE.value}")
        return self

    @classmethod
    def enabled(cls) -> "VerifyPolicy":
        return cls(mode=VerifyMode.ENABLED)

    @classmethod
    def disabled(cls) -> "VerifyPolicy":
        return cls(mode=VerifyMode.DISABLED)

    @classmethod
    def custom_bundle(cls, path: str) -> "VerifyPolicy":
        return cls(mode=VerifyMode.CUSTOM_BUNDLE, ca_bundle=path)

    @classmethod
    def parse(cls, value: Union["VerifyPolicy", bool, str, None]) -> "VerifyPolicy":
        """
        Coerce a configuration value into a policy.

        Args:
            value: Existing policy, boolean toggle, or string from the
                environment / caller.

        Returns:
            VerifyPolicy

        String rules (case-insensitive, surrounding whitespace ignored):
            ""                          -> enabled (treated as unset)
            "false", "0", "off", "no"   -> disabled
            "true", "1", "on", "yes"    -> enabled
            anything else               -> CA bundle path, kept verbatim

        A CA file whose name collides with a keyword must be passed as
        VerifyPolicy.custom_bundle(path).
        """
        if isinstance(value, VerifyPolicy):
            return value
        if value is None:
            return cls.enabled()
        if isinstance(value, bool):
            return cls.enabled() if value else cls.disabled()
        if isinstance(value, str):
            keyword = value.strip().lower()
            if keyword == "" or keyword in ENABLED_KEYWORDS:
                return cls.enabled()
            if keyword in DISABLED_KEYWORDS:
                return cls.disabled()
            return cls.custom_bundle(value)
        raise TypeError(f"verify must be a bool, a CA bundle path or a VerifyPolicy, got {type(value).__name__}")

    def as_transport(self) -> Union[bool, str]:
        """Value handed to requests' ``verify``: True, False or the bundle path."""
        if self.mode is VerifyMode.CUSTOM_BUNDLE:
            return self.ca_bundle
        return self.mode is VerifyMode.ENABLED
