"""
Pytest fixtures for Tableside module tests.
"""

import json

import pytest
from django.contrib.auth import get_user_model

from tableside import lifecycle
from tableside.models import Category, MenuItem, Order, Table


def _post_json(client, url, data=None):
    return client.post(url, data=json.dumps(data or {}), content_type='application/json')


@pytest.fixture
def admin_user(db):
    """Create a staff user that can log into the admin panel."""
    User = get_user_model()
    return User.objects.create_user(
        username='manager',
        email='manager@example.com',
        password='s3cret-pass',
        is_staff=True,
    )


@pytest.fixture
def admin_client(client, admin_user):
    """Return a client with an admin session."""
    response = _post_json(client, '/manage/login/', {
        'email': 'manager@example.com',
        'password': 's3cret-pass',
    })
    assert response.status_code == 200
    return client


@pytest.fixture
def table(db):
    """Create table 1."""
    return Table.objects.create(id=1, name='Table 1', seats=4)


@pytest.fixture
def table_five(db):
    """Create table 5."""
    return Table.objects.create(id=5, name='Table 5', seats=2)


@pytest.fixture
def drinks(db):
    """Create a drinks category."""
    return Category.objects.create(name='Drinks', order_index=1)


@pytest.fixture
def mains(db):
    """Create a mains category."""
    return Category.objects.create(name='Mains', order_index=2)


@pytest.fixture
def tea(drinks):
    return MenuItem.objects.create(category=drinks, name='Black Tea', price=50)


@pytest.fixture
def noodles(mains):
    return MenuItem.objects.create(category=mains, name='Beef Noodles', price=100)


@pytest.fixture
def order(table, noodles, tea):
    """Create an unpaid pending order: 2 noodles + 1 tea."""
    table.status = lifecycle.OCCUPIED
    table.save()
    return Order.objects.create(
        table=table,
        items=[
            {'id': str(noodles.id), 'name': noodles.name, 'price': 100, 'qty': 2, 'completed_qty': 0},
            {'id': str(tea.id), 'name': tea.name, 'price': 50, 'qty': 1, 'completed_qty': 0},
        ],
        total_price=250,
    )


@pytest.fixture
def paid_order(table, tea):
    """Create an order that was already checked out with cash."""
    return Order.objects.create(
        table=table,
        items=[{'id': str(tea.id), 'name': tea.name, 'price': 50, 'qty': 2, 'completed_qty': 2}],
        total_price=100,
        status=lifecycle.COMPLETED,
        payment_status=lifecycle.PAID,
        payment_method='cash',
    )


@pytest.fixture
def post_json():
    """POST a dict as a JSON body."""
    return _post_json
