# services/email.py
import os
from mailersend import emails
from pathlib import Path
import logging
import json
from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import settings

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

class EmailService:
    def __init__(self):
        self.api_key = os.getenv('MAILERSEND_API_KEY')
        self.sender_email = os.getenv('MAILERSEND_SENDER_EMAIL', 'noreply@loveonthepixel.com')
        self.frontend_url = settings.FRONTEND_URL

        if not self.api_key:
            raise ValueError("MAILERSEND_API_KEY not found in environment")

        self.mailer = emails.NewEmail(self.api_key)

        # Initialize Jinja2 environment
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(BASE_DIR / 'templates')),
            autoescape=select_autoescape(['html', 'xml'])
        )

        self.translations = self._load_translations()

    def _load_translations(self):
        """Load all translation files from the i18n directory"""
        translations = {}
        i18n_path = BASE_DIR / 'i18n'

        if not i18n_path.exists():
            logger.warning("i18n directory not found")
            return translations

        for locale_file in i18n_path.glob('*.json'):
            try:
                with open(locale_file, 'r', encoding='utf-8') as f:
                    translations[locale_file.stem] = json.load(f)
            except Exception as e:
                logger.error(f"Error loading translation file {locale_file}: {str(e)}")

        return translations

    def _get_translation(self, namespace: str, key: str, locale: str = 'en', **kwargs) -> str:
        """Get translated string for given namespace and key"""
        fallback = self.translations.get('en', {}).get(namespace, {}).get(key, f"{namespace}.{key}")
        translation = self.translations.get(locale, {}).get(namespace, {}).get(key, fallback)
        try:
            return translation.format(**kwargs) if kwargs else translation
        except (KeyError, IndexError) as e:
            logger.error(f"Translation error for {locale}.{namespace}.{key}: {str(e)}")
            return translation

    def _render_template(self, template_name: str, locale: str = 'en', **kwargs) -> str:
        """Render a template with translations and variables"""
        template = self.jinja_env.get_template(f"{template_name}.html")
        namespace = template_name.replace('-', '_')

        def translate(key, **trans_kwargs):
            return self._get_translation(namespace, key, locale, **trans_kwargs)

        return template.render(t=translate, frontend_url=self.frontend_url, **kwargs)

    async def send_email(
        self,
        template_name: str,
        to_email: str,
        subject_key: str,
        locale: str = 'en',
        **template_vars
    ):
        """Generic email sending method that supports any template and variables"""
        try:
            logger.info(f"Sending {template_name} email to {to_email} in {locale}")

            namespace = template_name.replace('-', '_')
            subject = self._get_translation(namespace, subject_key, locale, **template_vars)
            html_content = self._render_template(template_name, locale=locale, **template_vars)

            mail_body = self._create_mail_body(
                to_email=to_email,
                subject=subject,
                html_content=html_content
            )

            return self.mailer.send(mail_body)

        except Exception as e:
            logger.error(f"Failed to send {template_name} email: {str(e)}")
            raise

    async def send_invitation(
        self,
        to_email: str,
        inviter_name: str,
        share_url: str,
        invitee_name: str = None,
        custom_message: str = None
    ):
        return await self.send_email(
            template_name='invitation',
            to_email=to_email,
            subject_key='subject',
            inviter_name=inviter_name,
            invitee_name=invitee_name or 'there',
            custom_message=custom_message,
            share_url=share_url,
            app_download_url=settings.APP_DOWNLOAD_URL
        )

    def _create_mail_body(self, to_email: str, subject: str, html_content: str) -> dict:
        """Create a standardized mail body for MailerSend"""
        mail_body = {}

        mail_from = {
            "name": "Love on the Pixel",
            "email": self.sender_email
        }
        self.mailer.set_mail_from(mail_from, mail_body)

        recipients = [
            {
                "name": to_email,
                "email": to_email
            }
        ]
        self.mailer.set_mail_to(recipients, mail_body)

        self.mailer.set_subject(subject, mail_body)
        self.mailer.set_html_content(html_content, mail_body)

        plain_text = html_content.replace('<br>', '\n').replace('</p>', '\n\n')
        self.mailer.set_plaintext_content(plain_text, mail_body)

        return mail_body
