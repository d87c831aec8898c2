from __future__ import annotations

from typing import Any


USERS: list[dict[str, Any]] = [
    {
        "id": "410544b2-4001-4271-9855-fec4b6a6442a",
        "name": "User",
        "email": "user@nextmail.com",
        "password": "123456",
    },
]

CUSTOMERS: list[dict[str, Any]] = [
    {
        "id": "d6e15727-9fe1-4961-8c5b-ea44a9bd81aa",
        "name": "Evil Rabbit",
        "email": "evil@rabbit.com",
        "image_url": "/customers/evil-rabbit.png",
    },
    {
        "id": "3958dc9e-712f-4377-85e9-fec4b6a6442a",
        "name": "Delba de Oliveira",
        "email": "delba@oliveira.com",
        "image_url": "/customers/delba-de-oliveira.png",
    },
    {
        "id": "3958dc9e-742f-4377-85e9-fec4b6a6442a",
        "name": "Lee Robinson",
        "email": "lee@robinson.com",
        "image_url": "/customers/lee-robinson.png",
    },
    {
        "id": "76d65c26-f784-44a2-ac19-586678f7c2f2",
        "name": "Michael Novotny",
        "email": "michael@novotny.com",
        "image_url": "/customers/michael-novotny.png",
    },
    {
        "id": "cc27c14a-0acf-4f4a-a6c9-d45682c144b9",
        "name": "Amy Burns",
        "email": "amy@burns.com",
        "image_url": "/customers/amy-burns.png",
    },
    {
        "id": "13d07535-c59e-4157-a011-f8d2ef4e0cbb",
        "name": "Balazs Orban",
        "email": "balazs@orban.com",
        "image_url": "/customers/balazs-orban.png",
    },
]


def _invoice(customer: int, amount: int, status: str, date: str) -> dict[str, Any]:
    return {"customer_id": CUSTOMERS[customer]["id"], "amount": amount, "status": status, "date": date}


INVOICES: list[dict[str, Any]] = [
    _invoice(0, 15795, "pending", "2022-12-06"),
    _invoice(1, 20348, "pending", "2022-11-14"),
    _invoice(4, 3040, "paid", "2022-10-29"),
    _invoice(3, 44800, "paid", "2023-09-10"),
    _invoice(5, 34577, "pending", "2023-08-05"),
    _invoice(2, 54246, "pending", "2023-07-16"),
    _invoice(0, 666, "pending", "2023-06-27"),
    _invoice(3, 32545, "paid", "2023-06-09"),
    _invoice(4, 1250, "paid", "2023-06-17"),
    _invoice(5, 8546, "paid", "2023-06-07"),
    _invoice(1, 500, "paid", "2023-08-19"),
    _invoice(5, 8945, "paid", "2023-06-03"),
    _invoice(2, 1000, "paid", "2022-06-05"),
]

REVENUE: list[dict[str, Any]] = [
    {"month": "Jan", "revenue": 2000},
    {"month": "Feb", "revenue": 1800},
    {"month": "Mar", "revenue": 2200},
    {"month": "Apr", "revenue": 2500},
    {"month": "May", "revenue": 2300},
    {"month": "Jun", "revenue": 3200},
    {"month": "Jul", "revenue": 3500},
    {"month": "Aug", "revenue": 3700},
    {"month": "Sep", "revenue": 2500},
    {"month": "Oct", "revenue": 2800},
    {"month": "Nov", "revenue": 3000},
    {"month": "Dec", "revenue": 4800},
]


PLACEHOLDER_DATA: dict[str, list[dict[str, Any]]] = {
    "users": USERS,
    "customers": CUSTOMERS,
    "invoices": INVOICES,
    "revenue": REVENUE,
}
