from casework.models import FamilyStatus
from casework.services.comments import split_comments
from casework.services.notifier import AdminNotifier
from casework.services.verification import render_confirmation_page, render_error_page


def test_sends_to_validated_families_with_email(services, make_family, mailer):
    arabic = make_family(email="samira@example.org", language="Arabe", last_name="Benali")
    make_family(email="", phone="+33 7 00 00 00 02")
    make_family(email="inprogress@example.org", status=FamilyStatus.IN_PROGRESS.value, phone="+33 7 00 00 00 03")

    report = services.verification.send_to_all()

    assert (report.total, report.sent, report.skipped, report.failed) == (2, 1, 1, 0)
    assert report.reasons == {"no_email": 1}
    family_mail = next(mail for mail in mailer.sent if mail["to"] == "samira@example.org")
    assert family_mail["subject"] == "التحقق من معلوماتك"
    assert 'dir="rtl"' in family_mail["body"]
    assert "action=confirmfamilyinfo&amp;id=" in family_mail["body"]
    assert "token=secret-key" in family_mail["body"]
    assert "📧" in split_comments(services.store.require(arabic.id).comment_log)[0]
    assert any(mail["to"] == "admin@example.org" for mail in mailer.sent)


def test_mail_failures_are_counted(services, make_family, mailer, monkeypatch):
    make_family(email="claire@example.org")

    deliver = mailer.send

    def refuse_families(to, subject, body):
        if to != "admin@example.org":
            raise ConnectionError("SMTP unavailable")
        deliver(to, subject, body)

    monkeypatch.setattr(mailer, "send", refuse_families)

    report = services.verification.send_to_all()

    assert report.failed == 1
    assert report.reasons == {"error": 1}


def test_confirm_url(services):
    assert services.verification.confirm_url(7) == (
        "https://casework.example.org/api/exec?action=confirmfamilyinfo&id=7&token=secret-key"
    )


def test_confirm(services, make_family):
    family = make_family(language="Anglais")

    assert services.verification.confirm(family.id, "secret-key") == (True, "en")
    assert "✅" in split_comments(services.store.require(family.id).comment_log)[0]


def test_confirm_errors(services, make_family):
    family = make_family()

    assert services.verification.confirm(None, "secret-key") == (False, "missing_params")
    assert services.verification.confirm(family.id, "") == (False, "missing_params")
    assert services.verification.confirm(family.id, "guess") == (False, "invalid_token")
    assert services.verification.confirm(999, "secret-key") == (False, "not_found")


def test_pages():
    assert 'dir="rtl"' in render_confirmation_page("ar")
    assert "Merci pour votre confirmation" in render_confirmation_page("xx")
    assert "incomplete" in render_error_page("missing_params")
    assert "unexpected error" in render_error_page("something else")


def test_admin_notification_needs_an_address(settings, mailer):
    notifier = AdminNotifier(settings.model_copy(update={"admin_email": ""}), mailer)

    assert notifier.notify("Subject", "Body") is False
    assert mailer.sent == []


def test_admin_notification_is_html(settings, mailer):
    AdminNotifier(settings, mailer).notify("Family 3 rejected", "Invalid phone\nMissing address <b>")

    mail = mailer.sent[0]
    assert mail["subject"] == "[Gestion Familles] Family 3 rejected"
    assert "Invalid phone<br>Missing address &lt;b&gt;" in mail["body"]
