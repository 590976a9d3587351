"""
Password reset e-mail tests
"""
import email_service


def test_reset_email_escapes_user_name(monkeypatch):
    sent = {}

    def fake_send(to_email, subject, html_body, text_body=None):
        sent.update(to=to_email, html=html_body, text=text_body)
        return True

    monkeypatch.setattr(email_service, '_send_email', fake_send)

    assert email_service.send_password_reset('juan@dswd.gov.ph', 'tok123', '<b>Juan</b>')

    assert '<b>Juan</b>' not in sent['html']
    assert 'Hi &lt;b&gt;Juan&lt;/b&gt;,' in sent['html']
    assert 'reset-password?token=tok123' in sent['html']
    assert 'Hi <b>Juan</b>,' in sent['text']
