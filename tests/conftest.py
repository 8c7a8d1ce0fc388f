import datetime
from decimal import Decimal

import pytest

from myapp.models import Product

STATE_HEADER = "X-Page-State"


@pytest.fixture
def products(db):
    return [
        Product.objects.create(
            name=name,
            price=Decimal(price),
            released=datetime.date(2024, month, 1),
            category=category,
        )
        for name, price, month, category in (
            ("Alpha", "10.00", 1, "book"),
            ("Bravo", "25.50", 3, "music"),
            ("Charlie", "5.25", 6, "video"),
            ("Delta", "99.99", 9, "book"),
            ("Echo", "1.00", 12, "music"),
        )
    ]


@pytest.fixture
def many_products(db):
    return [
        Product.objects.create(name=f"name_{x:02}", price=Decimal(x)) for x in range(12)
    ]


class StatefulClient:
    """Posts to the form controller the way htmx_components.js does, carrying the page state header"""

    def __init__(self, client):
        self.client = client
        self.state = None

    def post(self, url, **data):
        extra = {"HTTP_HX_REQUEST": "true"}
        if self.state:
            extra["HTTP_X_PAGE_STATE"] = self.state
        response = self.client.post(url, data, **extra)
        if STATE_HEADER in response:
            self.state = response[STATE_HEADER]
        return response


@pytest.fixture
def htmx_client(admin_client):
    return StatefulClient(admin_client)
