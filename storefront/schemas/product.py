from pydantic import BaseModel, Field, StringConstraints
from typing import Annotated, List, Optional

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ColorIn(BaseModel):
    name: NonBlank
    value: Optional[str] = None
    image: Optional[str] = None


class SizeIn(BaseModel):
    name: NonBlank


class ProductIn(BaseModel):
    name: NonBlank
    description: Optional[str] = None
    price: float = Field(gt=0)
    salePrice: Optional[float] = Field(default=None, gt=0)
    sku: Optional[str] = None
    stock: int = Field(ge=0)
    image: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    categoryId: int
    colors: List[ColorIn] = Field(default_factory=list)
    sizes: List[SizeIn] = Field(default_factory=list)
    attributes: List[int] = Field(default_factory=list)


class NameIn(BaseModel):
    name: NonBlank


class NamedOut(BaseModel):
    id: int
    name: str


class ColorOut(BaseModel):
    id: int
    name: str
    value: Optional[str] = None
    image: Optional[str] = None


class SizeOut(BaseModel):
    id: int
    name: str


class ProductOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    salePrice: Optional[float] = None
    sku: Optional[str] = None
    stock: int
    image: Optional[str] = None
    images: List[str] = []
    categoryId: int
    category: Optional[NamedOut] = None
    colors: List[ColorOut] = []
    sizes: List[SizeOut] = []
    attributes: List[NamedOut] = []
