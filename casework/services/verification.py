"""Periodic email check that validated families' information is still current"""
from html import escape
from typing import Optional, Tuple
from urllib.parse import urlencode
import logging

from casework.models import Family, FamilyStatus
from casework.schemas import VerificationReport
from casework.services.family_store import FamilyStore
from casework.services.normalizer import DataNormalizer
from casework.services.notifier import AdminNotifier, Mailer

logger = logging.getLogger(__name__)

EMAIL_TEXT = {
    "fr": {
        "subject": "Vérification de vos informations",
        "greeting": "Bonjour",
        "intro": "Nous espérons que vous allez bien. Dans le cadre de notre suivi, nous souhaitons vérifier que vos informations sont toujours à jour.",
        "current_info": "Vos informations actuelles :",
        "name": "Nom complet",
        "address": "Adresse",
        "adults": "Nombre d'adultes",
        "children": "Nombre d'enfants",
        "question": "Vos informations sont-elles toujours correctes ?",
        "button_up_to_date": "✅ Tout est à jour",
        "button_changed": "📝 Mes informations ont changé",
        "footer": "Si vous avez des questions, n'hésitez pas à nous contacter.",
        "team": "L'équipe de Gestion des Familles",
    },
    "ar": {
        "subject": "التحقق من معلوماتك",
        "greeting": "مرحبا",
        "intro": "نأمل أن تكون بخير. كجزء من متابعتنا، نود التحقق من أن معلوماتك لا تزال محدثة.",
        "current_info": "معلوماتك الحالية:",
        "name": "الاسم الكامل",
        "address": "العنوان",
        "adults": "عدد البالغين",
        "children": "عدد الأطفال",
        "question": "هل معلوماتك لا تزال صحيحة؟",
        "button_up_to_date": "✅ كل شيء محدث",
        "button_changed": "📝 تغيرت معلوماتي",
        "footer": "إذا كان لديك أي أسئلة، لا تتردد في الاتصال بنا.",
        "team": "فريق إدارة العائلات",
    },
    "en": {
        "subject": "Please verify your information",
        "greeting": "Hello",
        "intro": "We hope you are doing well. As part of our follow-up, we would like to verify that your information is still up to date.",
        "current_info": "Your current information:",
        "name": "Full name",
        "address": "Address",
        "adults": "Number of adults",
        "children": "Number of children",
        "question": "Is your information still correct?",
        "button_up_to_date": "✅ Everything is up to date",
        "button_changed": "📝 My information has changed",
        "footer": "If you have any questions, please do not hesitate to contact us.",
        "team": "The Family Management Team",
    },
}

PAGE_TEXT = {
    "fr": {"title": "Merci pour votre confirmation !",
           "message": "Vos informations ont été confirmées avec succès.",
           "closing": "Vous pouvez fermer cette fenêtre."},
    "ar": {"title": "شكرا لتأكيدك!",
           "message": "تم تأكيد معلوماتك بنجاح.",
           "closing": "يمكنك إغلاق هذه النافذة."},
    "en": {"title": "Thank you for your confirmation!",
           "message": "Your information has been confirmed successfully.",
           "closing": "You can close this window."},
}

ERROR_TEXT = {
    "missing_params": "The confirmation link is incomplete.",
    "invalid_token": "The confirmation link is invalid.",
    "not_found": "We could not find your file.",
    "unknown_error": "An unexpected error occurred. Please try again later.",
}


def _page(title: str, body: str, color: str, rtl: bool = False) -> str:
    direction = ' dir="rtl"' if rtl else ""
    return f"""<!DOCTYPE html>
<html{direction}>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{escape(title)}</title>
    <style>
        body {{ font-family: Arial, sans-serif; background: #f4f6f8; display: flex; justify-content: center; padding-top: 80px; }}
        .card {{ background: #fff; border-radius: 12px; padding: 40px; max-width: 480px; text-align: center; box-shadow: 0 4px 16px rgba(0,0,0,0.08); }}
        h1 {{ color: {color}; }}
    </style>
</head>
<body>
    <div class="card">
        <h1>{escape(title)}</h1>
        {body}
    </div>
</body>
</html>"""


def render_confirmation_page(language_code: str) -> str:
    text = PAGE_TEXT.get(language_code, PAGE_TEXT["fr"])
    return _page(text["title"], f"<p>{escape(text['message'])}</p><p>{escape(text['closing'])}</p>",
                 "#2e7d32", rtl=language_code == "ar")


def render_error_page(error: str) -> str:
    message = ERROR_TEXT.get(error, ERROR_TEXT["unknown_error"])
    return _page("Error", f"<p>{escape(message)}</p>", "#c62828")


class VerificationService:
    def __init__(self, settings, store: FamilyStore, mailer: Mailer, notifier: AdminNotifier):
        self.store = store
        self.mailer = mailer
        self.notifier = notifier
        self.api_key = settings.api_key
        self.web_app_url = settings.web_app_url
        self.form_urls = {"fr": settings.form_url_fr, "ar": settings.form_url_ar, "en": settings.form_url_en}

    def confirm_url(self, family_id: int) -> str:
        query = urlencode({"action": "confirmfamilyinfo", "id": family_id, "token": self.api_key})
        return f"{self.web_app_url}?{query}"

    def render_email(self, family: Family, language_code: str) -> str:
        t = EMAIL_TEXT[language_code]
        update_url = self.form_urls.get(language_code) or self.form_urls["fr"]
        direction = ' dir="rtl"' if language_code == "ar" else ""
        rows = "".join(
            f"<tr><td><strong>{escape(label)}</strong></td><td>{escape(str(value))}</td></tr>"
            for label, value in (
                (t["name"], f"{family.first_name} {family.last_name}"),
                (t["address"], family.address or ""),
                (t["adults"], family.adult_count or 0),
                (t["children"], family.child_count or 0),
            )
        )
        return f"""<html{direction}><body style="font-family: Arial, sans-serif;">
<p>{escape(t['greeting'])} {escape(family.first_name or '')} {escape(family.last_name or '')},</p>
<p>{escape(t['intro'])}</p>
<h3>{escape(t['current_info'])}</h3>
<table>{rows}</table>
<p>{escape(t['question'])}</p>
<p><a href="{escape(self.confirm_url(family.id))}">{escape(t['button_up_to_date'])}</a></p>
<p><a href="{escape(update_url)}">{escape(t['button_changed'])}</a></p>
<p>{escape(t['footer'])}</p>
<p>{escape(t['team'])}</p>
</body></html>"""

    def send_to_all(self) -> VerificationReport:
        report = VerificationReport()
        validated = [f for f in self.store.all() if f.status == FamilyStatus.VALIDATED.value]
        report.total = len(validated)

        for family in validated:
            if not DataNormalizer.is_valid_email((family.email or "").strip()):
                report.skipped += 1
                report.reasons["no_email"] = report.reasons.get("no_email", 0) + 1
                continue

            code = DataNormalizer.language_code(family.language)
            try:
                self.mailer.send(family.email.strip(), EMAIL_TEXT[code]["subject"], self.render_email(family, code))
            except Exception as e:
                logger.error(f"Verification email to family {family.id} failed: {e}")
                report.failed += 1
                report.reasons["error"] = report.reasons.get("error", 0) + 1
                continue

            report.sent += 1
            self.store.append_comment(family, "📧", "Verification email sent")

        logger.info(f"Verification emails: {report.sent} sent, {report.skipped} skipped, {report.failed} failed")
        self.notifier.notify(
            "Verification emails sent",
            f"Total: {report.total}\nSent: {report.sent}\nSkipped: {report.skipped}\nFailed: {report.failed}"
        )
        return report

    def confirm(self, family_id, token: Optional[str]) -> Tuple[bool, str]:
        """Returns (ok, language code) on success or (False, error key)"""
        if family_id in (None, "") or not token:
            return False, "missing_params"
        if token != self.api_key:
            return False, "invalid_token"
        family = self.store.find_by_id(family_id)
        if family is None:
            return False, "not_found"

        self.store.append_comment(family, "✅", "Information confirmed by the family")
        logger.info(f"Family {family.id} confirmed their information")
        return True, DataNormalizer.language_code(family.language)
