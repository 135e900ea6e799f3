from .sender import EmailSender, MailTransport, SmtpTransport, render_email

__all__ = ["EmailSender", "MailTransport", "SmtpTransport", "render_email"]
