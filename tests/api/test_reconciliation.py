"""
Tests for the bank reconciliation API endpoints.
"""


def posted_entry(client, chart):
    entry = client.post("/journal-entries", json={
        "entry_date": "2025-03-01",
        "description": "Shop 4 rent",
        "lines": [
            {"account_id": chart["1.1.2"].id, "debit_amount": "2000"},
            {"account_id": chart["4.1.1"].id, "credit_amount": "2000"},
        ],
    }).json()
    client.post(f"/journal-entries/{entry['id']}/post")
    return entry


def import_line(client):
    response = client.post("/bank/transactions", json=[{
        "statement_reference": "ST-1",
        "transaction_date": "2025-03-01",
        "amount": "2000",
        "description": "Shop 4 rent",
    }])
    assert response.status_code == 201
    return response.json()[0]


def test_match_round_trip(client, chart, fiscal_year):
    entry = posted_entry(client, chart)
    tx = import_line(client)

    created = client.post("/bank/matches", json={
        "bank_transaction_id": tx["id"],
        "journal_entry_id": entry["id"],
    })
    assert created.status_code == 201

    conflict = client.post("/bank/matches", json={
        "bank_transaction_id": tx["id"],
        "journal_entry_id": entry["id"],
    })
    assert conflict.status_code == 409

    restored = client.delete(f"/bank/matches/{created.json()['id']}")
    assert restored.status_code == 200
    assert restored.json()["is_matched"] is False
    assert restored.json()["journal_entry_id"] is None


def test_suggestions_and_auto_match(client, chart, fiscal_year):
    entry = posted_entry(client, chart)
    tx = import_line(client)

    suggestions = client.get("/bank/suggestions").json()
    assert suggestions[0]["journal_entry_id"] == entry["id"]

    matches = client.post("/bank/auto-match").json()
    assert [m["bank_transaction_id"] for m in matches] == [tx["id"]]
    assert matches[0]["match_type"] == "auto"
