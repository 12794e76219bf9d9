from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, JSON, Table
from sqlalchemy.orm import relationship
from datetime import datetime
from storefront.models.user import Base


product_attributes = Table(
    "product_attributes",
    Base.metadata,
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("attribute_id", Integer, ForeignKey("attributes.id", ondelete="CASCADE"), primary_key=True),
)


class Category(Base):
    __tablename__ = "categories"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    products = relationship("Product", back_populates="category")


class Attribute(Base):
    __tablename__ = "attributes"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Product(Base):
    __tablename__ = "products"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(2000))
    price = Column(Numeric(10, 2), nullable=False)
    sale_price = Column(Numeric(10, 2))
    sku = Column(String(100))
    stock = Column(Integer, default=0, nullable=False)
    image = Column(String(500))
    images = Column(JSON)  # List of URLs
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("Category", back_populates="products")
    colors = relationship("ProductColor", back_populates="product", order_by="ProductColor.id")
    sizes = relationship("ProductSize", back_populates="product", order_by="ProductSize.id")
    attributes = relationship("Attribute", secondary=product_attributes, order_by="Attribute.id")

    @property
    def unit_price(self):
        """Price a buyer pays right now: the sale price when one is set."""
        return self.sale_price if self.sale_price is not None else self.price


class ProductColor(Base):
    __tablename__ = "product_colors"
    # replaced rows never hand their id to a new row
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    value = Column(String(50))  # e.g. hex code
    image = Column(String(500))

    product = relationship("Product", back_populates="colors")


class ProductSize(Base):
    __tablename__ = "product_sizes"
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)

    product = relationship("Product", back_populates="sizes")
