from ermakplan.services.mailer import MailDeliveryError, render_report_email
from tests.conftest import login


def _report(client, **fields):
    body = {"title": "Night shift", "location": "Line 3", "attachments": ["https://files.example/a.jpg"]}
    body.update(fields)
    resp = client.post("/api/reports", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_report_defaults(client, seed_users):
    login(client, "alice")
    report = _report(client)
    assert report["status"] == "draft"
    assert report["reportType"] == "daily"
    assert report["attachments"] == ["https://files.example/a.jpg"]


def test_cannot_mark_sent_without_sending(client, seed_users):
    login(client, "alice")
    assert client.post("/api/reports", json={"title": "x", "status": "sent"}).status_code == 400
    report = _report(client)
    assert client.patch(f"/api/reports/{report['id']}", json={"status": "sent"}).status_code == 400
    assert client.patch(f"/api/reports/{report['id']}", json={"status": "pending"}).json()["status"] == "pending"


def test_send_success_marks_sent(client, seed_users, monkeypatch):
    sent = []

    def fake_send(to, subject, html=None, text=None):
        sent.append((to, subject, html))

    monkeypatch.setattr("ermakplan.routes.reports.send_email", fake_send)
    login(client, "alice")
    report = _report(client)
    resp = client.post(f"/api/reports/{report['id']}/send", json={"emailTo": "boss@example.com"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "sent"
    assert body["emailTo"] == "boss@example.com"
    assert sent[0][0] == "boss@example.com"
    assert sent[0][1] == "Report: Night shift"


def test_send_failure_leaves_report_untouched(client, seed_users, monkeypatch):
    def failing_send(to, subject, html=None, text=None):
        raise MailDeliveryError("connection refused")

    monkeypatch.setattr("ermakplan.routes.reports.send_email", failing_send)
    login(client, "alice")
    report = _report(client)
    resp = client.post(f"/api/reports/{report['id']}/send", json={"emailTo": "boss@example.com"})
    assert resp.status_code == 502
    assert resp.json() == {"message": "Failed to send report email"}
    after = client.get(f"/api/reports/{report['id']}").json()
    assert after["status"] == "draft"
    assert after["emailTo"] is None


def test_send_without_smtp_config_fails(client, seed_users):
    login(client, "alice")
    report = _report(client)
    resp = client.post(f"/api/reports/{report['id']}/send", json={"emailTo": "boss@example.com"})
    assert resp.status_code == 502


def test_send_rejects_bad_address(client, seed_users):
    login(client, "alice")
    report = _report(client)
    resp = client.post(f"/api/reports/{report['id']}/send", json={"emailTo": "not-an-address"})
    assert resp.status_code == 400


def test_other_user_cannot_send(client, seed_users):
    login(client, "alice")
    report = _report(client)
    login(client, "bob")
    resp = client.post(f"/api/reports/{report['id']}/send", json={"emailTo": "boss@example.com"})
    assert resp.status_code == 403


def test_render_escapes_plain_fields():
    class Row:
        title = "<b>Leak</b>"
        location = "Bay & Dock"
        report_type = "issue"
        description = "<p>Valve <em>dripping</em></p>"
        attachments = []

    subject, html, text = render_report_email(Row())
    assert subject == "Report: <b>Leak</b>"
    assert "&lt;b&gt;Leak&lt;/b&gt;" in html
    assert "Bay &amp; Dock" in html
    # Description is already HTML and goes through as is
    assert "<p>Valve <em>dripping</em></p>" in html
