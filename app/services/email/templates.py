"""
Merge-field rendering and the built-in template library

Placeholders look like {{candidate_name}}; whitespace inside the
braces is tolerated.
"""
import re
from typing import Any, Dict, List

from app.models.email import EmailType

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def extract_variables(*texts: str) -> List[str]:
    """Sorted unique merge-field names across the given texts"""
    names = set()
    for text in texts:
        if text:
            names.update(_PLACEHOLDER.findall(text))
    return sorted(names)


def render(text: str, data: Dict[str, Any]) -> str:
    """Substitute known values; unknown placeholders stay as written"""
    if not text:
        return text

    def _sub(match: re.Match) -> str:
        name = match.group(1)
        if name in data and data[name] is not None:
            return str(data[name])
        return match.group(0)

    return _PLACEHOLDER.sub(_sub, text)


def render_template(subject: str, body_html: str, data: Dict[str, Any], body_text: str = None) -> Dict[str, Any]:
    return {
        "subject": render(subject, data),
        "body_html": render(body_html, data),
        "body_text": render(body_text, data) if body_text else None,
        "missing_variables": [
            name for name in extract_variables(subject, body_html, body_text or "")
            if data.get(name) is None
        ],
    }


DEFAULT_TEMPLATES: List[Dict[str, Any]] = [
    {
        "name": "Interview Invitation",
        "type": EmailType.INTERVIEW_INVITE,
        "subject": "Interview Invitation - {{job_title}} at {{company_name}}",
        "body_html": (
            "<p>Dear <strong>{{candidate_name}}</strong>,</p>"
            "<p>We were impressed by your application for the <strong>{{job_title}}</strong> "
            "position at {{company_name}} and would like to invite you for an interview.</p>"
            "<ul>"
            "<li><strong>Date:</strong> {{interview_date}}</li>"
            "<li><strong>Time:</strong> {{interview_time}}</li>"
            "<li><strong>Location:</strong> {{interview_location}}</li>"
            "</ul>"
            "<p><a href=\"{{confirm_link}}\">Confirm Interview</a></p>"
            "<p>Best regards,<br>{{company_name}} Recruitment Team</p>"
        ),
        "body_text": (
            "Dear {{candidate_name}},\n\n"
            "We would like to invite you to interview for the {{job_title}} position at {{company_name}}.\n"
            "Date: {{interview_date}}\nTime: {{interview_time}}\nLocation: {{interview_location}}\n\n"
            "Confirm: {{confirm_link}}\n\n{{company_name}} Recruitment Team"
        ),
    },
    {
        "name": "Application Received",
        "type": EmailType.APPLICATION_RECEIVED,
        "subject": "Application Received - {{job_title}}",
        "body_html": (
            "<p>Hi <strong>{{candidate_name}}</strong>,</p>"
            "<p>Thank you for applying for the <strong>{{job_title}}</strong> position at "
            "{{company_name}}. We received your application on <strong>{{application_date}}</strong>.</p>"
            "<p>Our team reviews every application and will be in touch about next steps.</p>"
            "<p>{{company_name}} Team</p>"
        ),
        "body_text": (
            "Hi {{candidate_name}},\n\n"
            "Thank you for applying for the {{job_title}} position at {{company_name}}. "
            "We received your application on {{application_date}}.\n\n{{company_name}} Team"
        ),
    },
    {
        "name": "Application Update - Not Selected",
        "type": EmailType.REJECTION,
        "subject": "Update on your application for {{job_title}}",
        "body_html": (
            "<p>Dear {{candidate_name}},</p>"
            "<p>Thank you for your interest in the <strong>{{job_title}}</strong> position at "
            "{{company_name}}. After careful consideration we have decided to move forward with "
            "other candidates whose experience more closely matches our current needs.</p>"
            "<p>We will keep your profile on file for future opportunities.</p>"
            "<p>Kind regards,<br>{{company_name}} Hiring Team</p>"
        ),
        "body_text": (
            "Dear {{candidate_name}},\n\n"
            "Thank you for your interest in the {{job_title}} position at {{company_name}}. "
            "We have decided to move forward with other candidates.\n\n{{company_name}} Hiring Team"
        ),
    },
    {
        "name": "Job Offer",
        "type": EmailType.OFFER,
        "subject": "Job Offer - {{job_title}} at {{company_name}}",
        "body_html": (
            "<p>Dear <strong>{{candidate_name}}</strong>,</p>"
            "<p>On behalf of {{company_name}}, I am pleased to offer you the position of "
            "<strong>{{job_title}}</strong>.</p>"
            "<ul>"
            "<li><strong>Salary:</strong> {{salary}}</li>"
            "<li><strong>Start date:</strong> {{start_date}}</li>"
            "<li><strong>Offer expires:</strong> {{offer_expiry_date}}</li>"
            "</ul>"
            "<p><a href=\"{{accept_offer_link}}\">Accept Offer</a></p>"
            "<p>{{company_name}} Hiring Team</p>"
        ),
        "body_text": (
            "Dear {{candidate_name}},\n\n"
            "We are pleased to offer you the position of {{job_title}} at {{company_name}}.\n"
            "Salary: {{salary}}\nStart date: {{start_date}}\nOffer expires: {{offer_expiry_date}}\n\n"
            "Accept: {{accept_offer_link}}\n\n{{company_name}} Hiring Team"
        ),
    },
]
