from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# -------------------------
# Pipeline values
# -------------------------
@dataclass(slots=True)
class Record:
    """One row of the source image index."""

    id: Any
    path: str
    created_at: Optional[str] = None
    processed: bool = False

    @property
    def filename(self) -> str:
        return self.path.split("/")[-1]


@dataclass(frozen=True, slots=True)
class CapabilitySelection:
    template_id: int
    provider_id: int
    variant_id: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "template_id": self.template_id,
            "provider_id": self.provider_id,
            "variant_id": self.variant_id,
        }


@dataclass(frozen=True, slots=True)
class ContentHandle:
    """Either an uploaded image id or a remote URL the catalog fetches itself."""

    upload_id: Optional[str] = None
    url: Optional[str] = None

    def __post_init__(self) -> None:
        if bool(self.upload_id) == bool(self.url):
            raise ValueError("ContentHandle needs exactly one of upload_id or url")

    @property
    def is_reference(self) -> bool:
        return self.url is not None


@dataclass(slots=True)
class CycleResult:
    status: str  # idle | busy | processed | failed
    record_id: Any = None
    product_id: Optional[str] = None
    stage: Optional[str] = None
    error: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "record_id": self.record_id,
            "product_id": self.product_id,
            "stage": self.stage,
            "error": self.error,
            "details": self.details,
        }


# -------------------------
# Printify product payload
# -------------------------
class PlacementImage(BaseModel):
    id: Optional[str] = None
    src: Optional[str] = None
    x: float = 0
    y: float = 0
    scale: float = 1
    angle: float = 0


class Placeholder(BaseModel):
    position: str = "front"
    images: List[PlacementImage]


class PrintArea(BaseModel):
    variant_ids: List[int]
    placeholders: List[Placeholder]


class ProductVariant(BaseModel):
    id: int
    price: int
    is_enabled: bool = True


class ProductRequest(BaseModel):
    title: str
    description: str
    blueprint_id: int
    print_provider_id: int
    variants: List[ProductVariant]
    print_areas: List[PrintArea] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
