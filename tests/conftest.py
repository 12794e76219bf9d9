import os
import tempfile
from decimal import Decimal

import pytest

# Settings are read at import time, so the database must be chosen before any storefront import
_DB_DIR = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "storefront.db")
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ENVIRONMENT"] = "test"

from fastapi.testclient import TestClient  # noqa: E402

from storefront.main import app  # noqa: E402
from storefront.models.user import Base, SessionLocal, User, engine  # noqa: E402
from storefront.models.product import Attribute, Category, Product, ProductColor, ProductSize  # noqa: E402
import storefront.models.address  # noqa: E402,F401
import storefront.models.cart  # noqa: E402,F401
import storefront.models.order  # noqa: E402,F401
import storefront.models.payment  # noqa: E402,F401
from storefront.utils.security import create_access_token  # noqa: E402


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db(tables):
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(tables):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def make_user(db):
    def _make(email: str, role: str = "USER") -> User:
        user = User(name=email.split("@")[0], email=email, role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def user(make_user):
    return make_user("alice@example.com")


@pytest.fixture()
def other_user(make_user):
    return make_user("bob@example.com")


@pytest.fixture()
def admin(make_user):
    return make_user("admin@example.com", role="ADMIN")


@pytest.fixture()
def auth_headers():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture()
def category(db):
    c = Category(name="Shirts")
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


@pytest.fixture()
def attribute(db):
    a = Attribute(name="Cotton")
    db.add(a)
    db.commit()
    db.refresh(a)
    return a


@pytest.fixture()
def make_product(db, category):
    def _make(
        name: str = "Linen Shirt",
        price: str = "100.00",
        sale_price=None,
        stock: int = 10,
        colors=("Red", "Blue"),
        sizes=("S", "M"),
    ) -> Product:
        product = Product(
            name=name,
            price=Decimal(price),
            sale_price=Decimal(sale_price) if sale_price is not None else None,
            stock=stock,
            category_id=category.id,
        )
        product.colors = [ProductColor(name=c) for c in colors]
        product.sizes = [ProductSize(name=s) for s in sizes]
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture()
def product(make_product):
    return make_product()
