from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Callable, Dict, List, Mapping, Optional

from storefront.domain.serviceability import DEFAULT_SERVICEABLE_PINCODES, normalize_pincode

from ..utils.logging import env_forces_debug


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


@dataclass
class SettingsConfig:
    """Typed runtime settings that persist via StorageLocal."""

    backend_url: str = field(default_factory=lambda: _env("STOREFRONT_BACKEND_URL"))
    anon_key: str = field(default_factory=lambda: _env("STOREFRONT_ANON_KEY"))
    functions_url: str = field(default_factory=lambda: _env("STOREFRONT_FUNCTIONS_URL"))
    google_maps_key: str = field(default_factory=lambda: _env("STOREFRONT_GOOGLE_MAPS_KEY"))
    request_timeout_s: int = 10
    retries: int = 2
    order_poll_interval_s: int = 15
    serviceable_pincodes: List[str] = field(
        default_factory=lambda: sorted(DEFAULT_SERVICEABLE_PINCODES)
    )


def _default_debug_logging() -> bool:
    return env_forces_debug()


class SettingsVM:
    """Keeps app settings UI state and validation, no I/O here."""

    def __init__(
        self,
        *,
        config: Optional[SettingsConfig] = None,
        on_save: Optional[Callable[[dict], None]] = None,
    ) -> None:
        self.config = config or SettingsConfig()
        self.on_save = on_save
        self.debug_logging: bool = _default_debug_logging()

    # ------------------------------------------------------------------
    # Properties bridging to the typed config
    # ------------------------------------------------------------------
    @property
    def backend_url(self) -> str:
        return self.config.backend_url

    @backend_url.setter
    def backend_url(self, value: str) -> None:
        self.config = replace(self.config, backend_url=self._coerce_url("backend_url", value))

    @property
    def anon_key(self) -> str:
        return self.config.anon_key

    @anon_key.setter
    def anon_key(self, value: str) -> None:
        self.config = replace(self.config, anon_key=self._coerce_optional_str(value))

    @property
    def functions_url(self) -> str:
        return self.config.functions_url

    @functions_url.setter
    def functions_url(self, value: str) -> None:
        self.config = replace(self.config, functions_url=self._coerce_url("functions_url", value))

    @property
    def google_maps_key(self) -> str:
        return self.config.google_maps_key

    @google_maps_key.setter
    def google_maps_key(self, value: str) -> None:
        self.config = replace(self.config, google_maps_key=self._coerce_optional_str(value))

    @property
    def retries(self) -> int:
        return self.config.retries

    @retries.setter
    def retries(self, value: int) -> None:
        self.config = replace(self.config, retries=self._coerce_int("retries", value, minimum=0))

    @property
    def request_timeout_s(self) -> int:
        return self.config.request_timeout_s

    @request_timeout_s.setter
    def request_timeout_s(self, value: int) -> None:
        coerced = self._coerce_int("request_timeout_s", value, minimum=1)
        self.config = replace(self.config, request_timeout_s=coerced)

    @property
    def order_poll_interval_s(self) -> int:
        return self.config.order_poll_interval_s

    @order_poll_interval_s.setter
    def order_poll_interval_s(self, value: int) -> None:
        coerced = self._coerce_int("order_poll_interval_s", value, minimum=1)
        self.config = replace(self.config, order_poll_interval_s=coerced)

    @property
    def serviceable_pincodes(self) -> List[str]:
        return list(self.config.serviceable_pincodes)

    @serviceable_pincodes.setter
    def serviceable_pincodes(self, value: Any) -> None:
        self.config = replace(self.config, serviceable_pincodes=self._coerce_pincodes(value))

    # ------------------------------------------------------------------
    def is_configured(self) -> bool:
        """True when enough is set to talk to a remote backend."""
        return bool(self.backend_url and self.anon_key)

    def is_valid(self) -> bool:
        if self.config.retries < 0:
            return False
        if self.backend_url and not self.anon_key:
            return False
        return True

    def apply_dict(self, payload: Mapping[str, Any]) -> None:
        """Apply persisted settings to the view-model."""

        if not isinstance(payload, Mapping):
            raise ValueError("Settings payload must be a mapping of flat keys.")

        allowed_flat_keys = {*SettingsConfig.__annotations__.keys(), "debug_logging"}
        unknown = set(payload.keys()) - allowed_flat_keys
        if unknown:
            raise ValueError(f"Unsupported settings keys: {', '.join(sorted(str(key) for key in unknown))}")

        updates: Dict[str, Any] = {}
        for cfg_key in SettingsConfig.__annotations__.keys():
            if cfg_key in payload:
                updates[cfg_key] = self._coerce_config_value(cfg_key, payload[cfg_key])

        if updates:
            self.config = replace(self.config, **updates)

        if "debug_logging" in payload:
            self.debug_logging = self._coerce_bool(payload["debug_logging"])

    def to_dict(self) -> dict:
        snapshot = asdict(self.config)
        snapshot["debug_logging"] = bool(self.debug_logging)
        return snapshot

    def set_debug_logging(self, enabled: bool) -> None:
        self.debug_logging = self._coerce_bool(enabled)

    def cmd_save(self) -> None:
        if not self.is_valid():
            raise ValueError("Settings invalid")
        if self.on_save:
            self.on_save(self.to_dict())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _coerce_config_value(self, key: str, raw: Any) -> Any:
        if key in {"backend_url", "functions_url"}:
            return self._coerce_url(key, raw)
        if key in {"anon_key", "google_maps_key"}:
            return self._coerce_optional_str(raw)
        if key in {"request_timeout_s", "order_poll_interval_s"}:
            return self._coerce_int(key, raw, minimum=1)
        if key == "retries":
            return self._coerce_int(key, raw, minimum=0)
        if key == "serviceable_pincodes":
            return self._coerce_pincodes(raw)
        raise ValueError(f"Unhandled config field: {key}")

    @staticmethod
    def _coerce_url(name: str, value: Any) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ValueError(f"{name} must be a string URL.")
        text = value.strip().rstrip("/")
        if text and not text.startswith(("http://", "https://")):
            raise ValueError(f"{name} must start with http:// or https://")
        return text

    @staticmethod
    def _coerce_optional_str(value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @staticmethod
    def _coerce_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)

    @staticmethod
    def _coerce_int(name: str, value: Any, *, minimum: Optional[int] = None) -> int:
        if isinstance(value, bool):
            raise ValueError(f"{name} must be an integer.")
        if isinstance(value, (int, float)):
            coerced = int(value)
        elif isinstance(value, str):
            try:
                coerced = int(value.strip())
            except (TypeError, ValueError) as exc:
                raise ValueError(f"{name} must be an integer.") from exc
        else:
            raise ValueError(f"{name} must be an integer.")
        if minimum is not None and coerced < minimum:
            raise ValueError(f"{name} must be at least {minimum}.")
        return coerced

    @staticmethod
    def _coerce_pincodes(value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.replace(";", ",").split(",")
        if not isinstance(value, (list, tuple, set, frozenset)):
            raise ValueError("serviceable_pincodes must be a list of pincodes.")
        codes = set()
        for raw in value:
            if raw is None or not str(raw).strip():
                continue
            code = normalize_pincode(str(raw))
            if code is None:
                raise ValueError(f"Invalid pincode in serviceable_pincodes: {raw}")
            codes.add(code)
        return sorted(codes)


def default_settings_payload() -> dict:
    """Return a fresh snapshot containing the default settings payload."""
    return SettingsVM().to_dict()
