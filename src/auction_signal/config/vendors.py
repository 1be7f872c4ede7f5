"""Validation of publisher-supplied adapter options."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError
from pydantic.config import ConfigDict

from auction_signal.constants import LOG_PREFIX
from auction_signal.errors import ConfigurationError


logger = logging.getLogger("uvicorn.error")
logger.setLevel(logging.INFO)

DataMode = Literal["raw", "index", "both"]

DATA_MODES: Tuple[str, ...] = ("raw", "index", "both")

PAYLOAD_FIELDS: Tuple[str, ...] = (
    "domain",
    "pageUrl",
    "publisherId",
    "timestamp",
    "auctionId",
    "adapterVersion",
    "pbjsVersion",
    "adUnits",
    "bidderRequests",
    "bidResponses",
    "noBids",
    "uniqueBidders",
    "bidderList",
    "cpmStats",
    "fillRate",
    "auctionDuration",
)


class VendorConfig(BaseModel):
    name: str = Field(..., min_length=1)
    endpoint: str = Field(..., min_length=1)
    data_mode: DataMode = "raw"
    exclude_fields: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)


class AdapterConfig(BaseModel):
    vendors: Tuple[VendorConfig, ...] = Field(..., min_length=1)
    publisher_id: Optional[str] = None
    exclude_fields: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    def describe(self) -> dict[str, Any]:
        return {
            "vendors": [
                {
                    "name": vendor.name,
                    "endpoint": vendor.endpoint,
                    "dataMode": vendor.data_mode,
                    "excludeFields": list(vendor.exclude_fields) or "using global",
                }
                for vendor in self.vendors
            ],
            "publisherId": self.publisher_id,
            "globalExcludeFields": list(self.exclude_fields),
        }


def _known_fields(fields: Iterable[Any]) -> Tuple[str, ...]:
    known: list[str] = []
    for field in fields:
        if field not in PAYLOAD_FIELDS:
            logger.warning('%s Unknown field "%s" in excludeFields, ignoring', LOG_PREFIX, field)
            continue
        if field not in known:
            known.append(field)
    return tuple(known)


def _parse_vendor(raw: Any) -> Optional[VendorConfig]:
    if not isinstance(raw, Mapping):
        logger.warning("%s Vendor entry is not an object, skipping: %r", LOG_PREFIX, raw)
        return None

    name = raw.get("name")
    if not name or not isinstance(name, str):
        logger.warning("%s Vendor missing name, skipping: %r", LOG_PREFIX, dict(raw))
        return None

    endpoint = raw.get("endpoint")
    if not endpoint or not isinstance(endpoint, str):
        logger.warning('%s Vendor "%s" missing endpoint, skipping', LOG_PREFIX, name)
        return None

    data_mode = raw.get("dataMode") or "raw"
    if data_mode not in DATA_MODES:
        logger.warning(
            "%s Vendor \"%s\" has invalid dataMode \"%s\", defaulting to 'raw'",
            LOG_PREFIX,
            name,
            data_mode,
        )
        data_mode = "raw"

    exclude_raw = raw.get("excludeFields")
    exclude_fields: Tuple[str, ...] = ()
    if exclude_raw is not None:
        if isinstance(exclude_raw, (list, tuple)):
            exclude_fields = _known_fields(exclude_raw)
        else:
            logger.warning('%s Vendor "%s" has invalid excludeFields, ignoring', LOG_PREFIX, name)

    try:
        return VendorConfig(
            name=name,
            endpoint=endpoint,
            data_mode=data_mode,
            exclude_fields=exclude_fields,
        )
    except ValidationError as exc:
        logger.warning('%s Vendor "%s" is invalid, skipping: %s', LOG_PREFIX, name, exc)
        return None


def parse_adapter_options(options: Any) -> AdapterConfig:
    """Validate raw adapter options into an :class:`AdapterConfig`.

    Invalid vendor entries and unknown exclusion fields are dropped with a
    warning. Raises :class:`ConfigurationError` when no vendor survives.
    """

    if not isinstance(options, Mapping):
        raise ConfigurationError("Invalid configuration object provided.")

    raw_vendors = options.get("vendors")
    if not isinstance(raw_vendors, (list, tuple)) or not raw_vendors:
        raise ConfigurationError(
            "No vendors configured. Please provide at least one vendor with name and endpoint."
        )

    vendors = [vendor for vendor in map(_parse_vendor, raw_vendors) if vendor is not None]
    if not vendors:
        raise ConfigurationError("No valid vendors configured after validation.")

    publisher_id = options.get("publisherId") or None
    if publisher_id is not None and not isinstance(publisher_id, str):
        logger.warning("%s publisherId must be a string, ignoring %r", LOG_PREFIX, publisher_id)
        publisher_id = None

    global_raw = options.get("excludeFields")
    if isinstance(global_raw, (list, tuple)):
        global_exclude = _known_fields(global_raw)
    else:
        if global_raw is not None:
            logger.warning("%s Global excludeFields must be a list, ignoring", LOG_PREFIX)
        global_exclude = ()

    return AdapterConfig(
        vendors=tuple(vendors),
        publisher_id=publisher_id,
        exclude_fields=global_exclude,
    )
