"""
Tests for the report API endpoints.
"""


def post_entry(client, chart, amount="1000"):
    entry = client.post("/journal-entries", json={
        "entry_date": "2025-03-01",
        "description": "Rent received",
        "lines": [
            {"account_id": chart["1.1.1"].id, "debit_amount": amount},
            {"account_id": chart["4.1.1"].id, "credit_amount": amount},
        ],
    }).json()
    client.post(f"/journal-entries/{entry['id']}/post")
    return entry


def test_trial_balance(client, chart, fiscal_year):
    post_entry(client, chart)
    data = client.get("/reports/trial-balance").json()

    assert data["is_balanced"] is True
    assert float(data["total_debit"]) == float(data["total_credit"]) == 1000.0


def test_general_ledger(client, chart, fiscal_year):
    post_entry(client, chart, "300")
    post_entry(client, chart, "200")

    data = client.get(f"/reports/general-ledger/{chart['1.1.1'].id}").json()

    assert [float(line["running_balance"]) for line in data["lines"]] == [300.0, 500.0]
    assert float(data["closing_balance"]) == 500.0


def test_general_ledger_unknown_account(client):
    assert client.get("/reports/general-ledger/999").status_code == 404


def test_statements(client, chart, fiscal_year):
    post_entry(client, chart)

    sheet = client.get("/reports/balance-sheet").json()
    income = client.get("/reports/income-statement").json()
    summary = client.get("/reports/summary").json()

    assert float(sheet["assets"]["current"]) == 1000.0
    assert float(income["revenue"]["property"]) == 1000.0
    assert float(sheet["retained_earnings"]) == float(income["net_income"])
    assert float(summary["net_income"]) == 1000.0
