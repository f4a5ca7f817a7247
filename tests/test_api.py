import config
from helpers import ist

DAY = "2025-03-14"


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"status": "Field Sales DSR service is running!"}


def test_manual_compile_for_an_explicit_date(client, add_rep, add_visit, add_sale):
    add_rep("rep1")
    add_rep("rep2")
    add_visit("rep1", ist(DAY, "10:00"))
    add_sale("rep1", DAY, "Artvio", 12)

    response = client.post("/api/dsr/compile", json={"date": DAY})

    assert response.status_code == 200
    body = response.json()
    assert body["date"] == DAY
    assert (body["processed"], body["written"], body["skipped"], body["failed"]) == (2, 1, 1, 0)

    report = client.get(f"/api/dsr/rep1_{DAY}").json()
    assert report["status"] == config.DSR_STATUS_PENDING
    assert report["total_sheets_sold"] == 12
    assert report["sheets_sales"] == [{"catalog": "Artvio", "totalSheets": 12}]
    assert report["total_visits"] == 1


def test_manual_compile_rejects_a_bad_date(client):
    for value in ("14-03-2025", "2025-W11-5"):
        response = client.post("/api/dsr/compile", json={"date": value})

        assert response.status_code == 422


def test_missing_report_is_404(client):
    assert client.get(f"/api/dsr/nobody_{DAY}").status_code == 404


def test_review_marks_report_and_records_reviewer(client, add_rep, add_sale):
    add_rep("rep1")
    add_sale("rep1", DAY, "Woodrica", 3)
    client.post("/api/dsr/compile", json={"date": DAY})

    response = client.post(
        f"/api/dsr/rep1_{DAY}/review",
        json={"reviewer_id": "nh1", "status": "needs_revision", "comments": "Missing bill"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == config.DSR_STATUS_NEEDS_REVISION
    assert body["reviewed_by"] == "nh1"
    assert body["manager_comments"] == "Missing bill"
    assert body["reviewed_at"] is not None


def test_review_refuses_already_approved_report(client, add_rep, add_visit):
    add_rep("rep1")
    add_visit("rep1", ist(DAY, "10:00"))
    client.post("/api/dsr/compile", json={"date": DAY})

    response = client.post(f"/api/dsr/rep1_{DAY}/review", json={"reviewer_id": "nh1", "status": "approved"})

    assert response.status_code == 400


def test_review_rejects_unknown_status(client):
    response = client.post(f"/api/dsr/rep1_{DAY}/review", json={"reviewer_id": "nh1", "status": "pending"})

    assert response.status_code == 400


def test_set_and_read_target_with_progress(client, add_sale, add_visit):
    add_sale("rep1", "2025-03-03", "Artvio", 40)
    add_sale("rep1", "2025-03-04", "Woodrica", 10)
    add_visit("rep1", ist("2025-03-05", "11:00"), account_type="architect")

    put = client.put("/api/targets/rep1/2025-03", json={
        "targets_by_catalog": {"Artvio": 100},
        "targets_by_account_type": {"architect": 4},
        "auto_renew": True,
        "created_by": "mgr1",
        "created_by_name": "Meera Manager",
    })
    assert put.status_code == 200
    assert put.json()["id"] == "rep1_2025-03"

    body = client.get("/api/targets/rep1/2025-03").json()
    assert body["target"]["auto_renew"] is True
    assert body["sheet_progress"] == [{"catalog": "Artvio", "target": 100, "achieved": 40, "percentage": 40}]
    assert body["visit_progress"] == [{"account_type": "architect", "target": 4, "achieved": 1, "percentage": 25}]


def test_updating_a_target_records_the_latest_editor(client):
    client.put("/api/targets/rep1/2025-03", json={
        "targets_by_catalog": {"Artvio": 100}, "created_by": "mgr1", "created_by_name": "Meera Manager",
    })

    response = client.put("/api/targets/rep1/2025-03", json={
        "targets_by_catalog": {"Artvio": 120}, "created_by": "mgr2", "created_by_name": "Someone Else",
    })

    body = response.json()
    assert body["targets_by_catalog"] == {"Artvio": 120}
    assert (body["created_by"], body["created_by_name"]) == ("mgr2", "Someone Else")


def test_set_target_validation(client):
    def put(month, payload):
        payload.setdefault("created_by", "mgr1")
        return client.put(f"/api/targets/rep1/{month}", json=payload).status_code

    assert put("2025-3", {"targets_by_catalog": {"Artvio": 10}}) == 422
    assert put("2025-03%0A", {"targets_by_catalog": {"Artvio": 10}}) == 422
    assert put("2025-03", {"targets_by_catalog": {"Artvio": 0}}) == 422
    assert put("2025-03", {"targets_by_catalog": {"Artvio": -3}}) == 422
    assert put("2025-03", {"targets_by_catalog": {"Legacy Line": 10}}) == 422
    assert put("2025-03", {"targets_by_catalog": {}, "targets_by_account_type": {"retailer": 2}}) == 422
    assert put("2025-03", {"targets_by_catalog": {"Artvio": None}}) == 422


def test_stop_auto_renew(client, add_target):
    add_target("rep1", "2025-03", by_catalog={"Artvio": 100}, auto_renew=True)

    response = client.post("/api/targets/rep1/2025-03/stop-auto-renew")

    assert response.status_code == 200
    assert response.json()["auto_renew"] is False
    assert client.post("/api/targets/rep2/2025-03/stop-auto-renew").status_code == 404


def test_missing_target_is_404(client):
    assert client.get("/api/targets/rep1/2025-03").status_code == 404


def test_update_future_months_rewrites_renewed_targets_only(client, add_target):
    add_target("rep1", "2025-03", by_catalog={"Artvio": 100})
    add_target("rep1", "2025-04", by_catalog={"Artvio": 100}, source_target_id="rep1_2025-03")
    add_target("rep1", "2025-05", by_catalog={"Woodrica": 8}, created_by="mgr2")

    response = client.put("/api/targets/rep1/2025-03", json={
        "targets_by_catalog": {"Artvio": 140}, "update_future_months": True, "created_by": "mgr1",
    })

    assert response.status_code == 200
    assert client.get("/api/targets/rep1/2025-04").json()["target"]["targets_by_catalog"] == {"Artvio": 140}
    assert client.get("/api/targets/rep1/2025-05").json()["target"]["targets_by_catalog"] == {"Woodrica": 8}


def test_future_months_stay_put_without_the_flag(client, add_target):
    add_target("rep1", "2025-03", by_catalog={"Artvio": 100})
    add_target("rep1", "2025-04", by_catalog={"Artvio": 100}, source_target_id="rep1_2025-03")

    client.put("/api/targets/rep1/2025-03", json={"targets_by_catalog": {"Artvio": 140}, "created_by": "mgr1"})

    assert client.get("/api/targets/rep1/2025-04").json()["target"]["targets_by_catalog"] == {"Artvio": 100}


def test_team_targets_view(client, add_rep, add_target, add_sale):
    add_rep("rep1")
    add_rep("rep2")
    add_rep("rep3")
    add_target("rep1", "2025-03", by_catalog={"Artvio": 10})
    add_target("rep2", "2025-03", by_catalog={"Artvio": 10})
    add_sale("rep1", "2025-03-05", "Artvio", 9)
    add_sale("rep2", "2025-03-05", "Artvio", 3)

    response = client.get("/api/targets/2025-03")

    assert response.status_code == 200
    rows = [(r["user_id"], r["has_target"], r["overall_percentage"]) for r in response.json()]
    assert rows == [("rep2", True, 30), ("rep1", True, 90), ("rep3", False, 0)]
    assert client.get("/api/targets/2025-3").status_code == 422


def _compile_two_days(client, add_rep, add_visit, add_sale):
    add_rep("rep1")
    add_rep("rep2")
    for day in ("2025-03-13", DAY):
        add_visit("rep1", ist(day, "10:00"))
        add_sale("rep2", day, "Artis", 4)
        client.post("/api/dsr/compile", json={"date": day})


def test_list_dsr_reports_filters_by_status_and_date(client, add_rep, add_visit, add_sale):
    _compile_two_days(client, add_rep, add_visit, add_sale)

    everything = client.get("/api/dsr", params={"status": "all"}).json()
    assert [r["id"] for r in everything] == [
        f"rep1_{DAY}", f"rep2_{DAY}", "rep1_2025-03-13", "rep2_2025-03-13",
    ]

    pending = client.get("/api/dsr", params={"status": config.DSR_STATUS_PENDING}).json()
    assert [r["id"] for r in pending] == [f"rep2_{DAY}", "rep2_2025-03-13"]

    one_day = client.get("/api/dsr", params={"date": DAY}).json()
    assert [r["id"] for r in one_day] == [f"rep1_{DAY}", f"rep2_{DAY}"]


def test_list_dsr_reports_rejects_a_bad_date(client):
    assert client.get("/api/dsr", params={"date": "2025-W11-5"}).status_code == 422


def test_resubmit_returns_a_revised_report_to_the_queue(client, add_rep, add_sale):
    add_rep("rep1")
    add_sale("rep1", DAY, "Woodrica", 3)
    client.post("/api/dsr/compile", json={"date": DAY})

    assert client.post(f"/api/dsr/rep1_{DAY}/resubmit").status_code == 400

    client.post(f"/api/dsr/rep1_{DAY}/review", json={"reviewer_id": "nh1", "status": "needs_revision"})
    response = client.post(f"/api/dsr/rep1_{DAY}/resubmit")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == config.DSR_STATUS_PENDING
    assert body["resubmitted_at"] is not None
    assert body["reviewed_by"] == "nh1"


def test_resubmit_missing_report_is_404(client):
    assert client.post(f"/api/dsr/nobody_{DAY}/resubmit").status_code == 404
