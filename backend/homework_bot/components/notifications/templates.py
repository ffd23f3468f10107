"""HTML email templates for homework notifications."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from html import escape

from ..homework.due_dates import format_date_numeric_de


@dataclass(frozen=True)
class HomeworkMailValues:
    applicant_name: str
    issue_url: str
    project_url: str
    homework_due_date: date
    signature: str


def homework_mail_html(values: HomeworkMailValues) -> str:
    applicant_name = escape(values.applicant_name)
    issue_url = escape(values.issue_url, quote=True)
    project_url = escape(values.project_url, quote=True)
    due_date = format_date_numeric_de(values.homework_due_date)
    signature = escape(values.signature)
    return f"""\
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="margin:0;padding:0;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,Helvetica,Arial,sans-serif;color:#1f2937;">
  <p>Hallo {applicant_name},</p>
  <p>
    wie besprochen erhältst du heute deine Hausaufgabe. Wir haben dir dafür ein eigenes
    GitLab-Repository angelegt:
    <a href="{project_url}">{project_url}</a>
  </p>
  <p>
    Alle Infos zur Aufgabe findest du in der README des Repositories. Wenn du fertig bist,
    schließe bitte dieses Issue, damit wir Bescheid bekommen:
    <a href="{issue_url}">{issue_url}</a>
  </p>
  <p>
    Bitte schließe die Hausaufgabe bis spätestens <strong>{due_date}</strong> ab.
    Falls du Fragen hast, antworte einfach auf diese Mail.
  </p>
  <p>Viel Spaß und viele Grüße<br>{signature}</p>
</body>
</html>"""
