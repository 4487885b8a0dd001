"""
Tests for the Contact Form
"""
import importlib.util
import json
from smtplib import SMTPException
from unittest.mock import Mock, patch
from urllib.parse import urlencode

import pytest
from django.db import DatabaseError, OperationalError
from rest_framework import status
from rest_framework.test import APIClient

from contact.models import ContactFormSubmission
from contact.notifications import ContactNotifier
from contact.rate_limiting import SESSION_KEY, SubmissionThrottle
from contact.sanitization import extract_fields, sanitize_value
from contact.serializers import validate_submission
from contact.services import ContactSubmissionService, SubmissionOutcome

SUBMIT_URL = '/api/contact/submit'

REQUIRED_FIELDS = {'fullName', 'email', 'phone', 'enquiryType', 'message'}

# More fields than DATA_UPLOAD_MAX_NUMBER_FIELDS (1000) allows
OVERSIZED_FORM = urlencode({f'field{i}': 'x' for i in range(1500)})


@pytest.fixture
def valid_submission():
    return {
        'fullName': 'Jane Doe',
        'email': 'jane@example.com',
        'phone': '+1555',
        'enquiryType': 'General',
        'message': 'Hello',
        'botField': '',
    }


class TestSanitization:
    """Test input sanitization."""

    def test_strips_tags_and_whitespace(self):
        assert sanitize_value('  <b>Jane</b> Doe  ') == 'Jane Doe'

    def test_escapes_quotes_and_angle_brackets(self):
        assert sanitize_value('Tom & "Jerry"\'s') == 'Tom &amp; &quot;Jerry&quot;&#x27;s'
        assert sanitize_value('a < b') == 'a &lt; b'
        assert sanitize_value('5 > 3') == '5 &gt; 3'

    def test_script_tags_removed(self):
        cleaned = sanitize_value('<script>alert("x")</script>Hello')
        assert '<' not in cleaned
        assert '>' not in cleaned
        assert '"' not in cleaned
        assert cleaned.endswith('Hello')

    def test_nested_values(self):
        data = {'tags': [' <i>one</i> ', None, 5], 'inner': {'name': ' <b>x</b>'}}

        assert sanitize_value(data) == {'tags': ['one', '', '5'], 'inner': {'name': 'x'}}

    @pytest.mark.parametrize('raw', [
        'plain text',
        '  padded  ',
        'Tom & Jerry',
        '&amp; already escaped',
        '<i>&lt;x&gt;</i>',
        '<p> spaced </p>',
        'quote " and \' apostrophe',
        'line one\nline two',
        '',
    ])
    def test_idempotent(self, raw):
        once = sanitize_value(raw)
        assert sanitize_value(once) == once

    def test_extract_fields_defaults_missing_to_empty(self):
        fields = extract_fields({'fullName': 'Jane', 'email': ['a@b.co', 'c@d.co']})

        assert fields['fullName'] == 'Jane'
        assert fields['email'] == 'c@d.co'
        assert fields['botField'] == ''
        assert set(fields) == REQUIRED_FIELDS | {'botField'}


class TestValidation:
    """Test field validation rules."""

    def test_valid_input_has_no_errors(self, valid_submission):
        assert validate_submission(valid_submission) == {}

    def test_invalid_email(self, valid_submission):
        valid_submission['email'] = 'not-an-email'

        errors = validate_submission(valid_submission)

        assert 'email' in errors
        assert errors['email'] == 'Please provide a valid email address.'

    @pytest.mark.parametrize('email', ['jane.example.com', 'jane@example', 'jane @example.com', 'a@b@c.com'])
    def test_malformed_email_shapes(self, valid_submission, email):
        valid_submission['email'] = email
        assert 'email' in validate_submission(valid_submission)

    def test_all_required_fields_empty(self):
        errors = validate_submission({name: '' for name in REQUIRED_FIELDS})

        assert set(errors) == REQUIRED_FIELDS
        assert errors['email'] == 'Valid Email is required.'
        assert errors['fullName'] == 'Full Name is required.'

    def test_missing_fields_reported(self):
        errors = validate_submission({})
        assert set(errors) == REQUIRED_FIELDS

    def test_lengths_match_columns(self, valid_submission):
        valid_submission['fullName'] = 'a' * 255
        assert validate_submission(valid_submission) == {}

        valid_submission['phone'] = '1' * 55
        valid_submission['enquiryType'] = 'e' * 101

        errors = validate_submission(valid_submission)

        assert set(errors) == {'phone', 'enquiryType'}

    def test_length_measured_after_escaping(self, valid_submission):
        # Nine quotes escape to 54 characters, over the 50 allowed for phone
        valid_submission['phone'] = sanitize_value('"' * 9)

        assert 'phone' in validate_submission(valid_submission)


class TestSubmissionThrottle:
    """Test session based rate limiting."""

    def test_fresh_session_is_allowed(self):
        throttle = SubmissionThrottle({}, window_seconds=60, clock=lambda: 1000)
        assert throttle.is_allowed()
        assert throttle.retry_after() == 0

    def test_blocks_within_window(self):
        session = {}
        throttle = SubmissionThrottle(session, window_seconds=60, clock=lambda: 1000)
        throttle.record_submission()

        later = SubmissionThrottle(session, window_seconds=60, clock=lambda: 1030)

        assert session[SESSION_KEY] == 1000
        assert not later.is_allowed()
        assert later.retry_after() == 30

    def test_allows_after_window(self):
        session = {SESSION_KEY: 1000}
        throttle = SubmissionThrottle(session, window_seconds=60, clock=lambda: 1060)
        assert throttle.is_allowed()


@pytest.mark.django_db
class TestContactFormSubmission:
    """Test public contact form submission."""

    def test_end_to_end_success(self, api_client, valid_submission, mailoutbox):
        response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response['Content-Type'] == 'application/json'
        assert response.json() == {'message': 'Your message has been sent successfully.'}

        record = ContactFormSubmission.objects.get()
        assert record.enquiry_type == 'General'
        assert record.full_name == 'Jane Doe'
        assert record.submitted_at is not None

        assert len(mailoutbox) == 2
        admin_mail, user_mail = mailoutbox
        assert admin_mail.to == ['operator@example.com']
        assert admin_mail.bcc == ['monitor@example.com']
        assert admin_mail.reply_to == ['jane@example.com']
        assert admin_mail.subject == 'New Contact Form Submission - Chidavisa Synergy Hub'
        assert 'Jane Doe' in admin_mail.body
        assert '+1555' in admin_mail.body

        assert user_mail.to == ['Jane Doe <jane@example.com>']
        assert user_mail.bcc == ['monitor@example.com']
        assert user_mail.subject == 'Thanks for contacting Chidavisa Synergy Hub!'
        assert 'Hello' in user_mail.body

    def test_form_encoded_submission(self, api_client, valid_submission, mailoutbox):
        response = api_client.post(SUBMIT_URL, valid_submission)

        assert response.status_code == status.HTTP_200_OK
        assert ContactFormSubmission.objects.count() == 1

    def test_raw_json_body_without_json_content_type(self, api_client, valid_submission, mailoutbox):
        response = api_client.post(
            SUBMIT_URL,
            data=json.dumps(valid_submission),
            content_type='text/plain'
        )

        assert response.status_code == status.HTTP_200_OK

    def test_malformed_json_treated_as_empty(self, api_client):
        response = api_client.post(SUBMIT_URL, data='{not json', content_type='application/json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert set(response.json()['errors']) == REQUIRED_FIELDS

    def test_json_body_without_content_type(self, api_client, valid_submission, mailoutbox):
        response = api_client.generic('POST', SUBMIT_URL, json.dumps(valid_submission), content_type='')

        assert response.status_code == status.HTTP_200_OK
        assert ContactFormSubmission.objects.count() == 1

    def test_too_many_form_fields_treated_as_empty(self, api_client):
        response = api_client.post(
            SUBMIT_URL,
            data=OVERSIZED_FORM,
            content_type='application/x-www-form-urlencoded'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert set(response.json()['errors']) == REQUIRED_FIELDS

    def test_overlong_phone_rejected_before_insert(self, api_client, valid_submission, mailoutbox):
        valid_submission['phone'] = '1' * 55

        response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert set(response.json()['errors']) == {'phone'}
        assert ContactFormSubmission.objects.count() == 0
        assert len(mailoutbox) == 0

    def test_stored_values_are_sanitized(self, api_client, valid_submission, mailoutbox):
        valid_submission['fullName'] = '  <b>Jane</b> "JD" Doe '
        valid_submission['message'] = '<script>alert(1)</script>Hi <there>'

        response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_200_OK
        record = ContactFormSubmission.objects.get()
        assert record.full_name == 'Jane &quot;JD&quot; Doe'
        assert '<' not in record.message

        html_body, mimetype = mailoutbox[0].alternatives[0]
        assert mimetype == 'text/html'
        assert 'Jane &quot;JD&quot; Doe' in html_body
        assert '&amp;quot;' not in html_body
        assert 'Jane "JD" Doe' in mailoutbox[0].body

    def test_validation_errors(self, api_client, valid_submission, mailoutbox):
        valid_submission['email'] = 'not-an-email'
        valid_submission['phone'] = ''

        response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert set(response.json()['errors']) == {'email', 'phone'}
        assert ContactFormSubmission.objects.count() == 0
        assert len(mailoutbox) == 0

    def test_honeypot_spam_detection(self, api_client, valid_submission, mailoutbox):
        valid_submission['botField'] = 'http://spam.example'

        response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {'message': 'Spam detected.'}
        assert ContactFormSubmission.objects.count() == 0
        assert len(mailoutbox) == 0

    def test_honeypot_wins_over_invalid_fields(self, api_client):
        response = api_client.post(SUBMIT_URL, {'botField': 'filled'}, format='json')
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_honeypot_does_not_start_rate_limit(self, api_client, valid_submission, mailoutbox):
        api_client.post(SUBMIT_URL, dict(valid_submission, botField='bot'), format='json')

        response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_200_OK

    def test_other_methods_not_found(self, api_client):
        for method in (api_client.get, api_client.put, api_client.delete):
            response = method(SUBMIT_URL)
            assert response.status_code == status.HTTP_404_NOT_FOUND
            assert response.json() == {'message': 'Page not found.'}


@pytest.mark.django_db
class TestRateLimiting:
    """Test rate limiting for the contact form."""

    def test_second_submission_within_window(self, api_client, valid_submission, mailoutbox):
        first = api_client.post(SUBMIT_URL, valid_submission, format='json')
        second = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert first.status_code == status.HTTP_200_OK
        assert second.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert second.json() == {'message': 'Please wait a bit before submitting again.'}
        assert int(second['Retry-After']) > 0
        assert ContactFormSubmission.objects.count() == 1

    def test_rate_limit_checked_before_validation(self, api_client, valid_submission, mailoutbox):
        api_client.post(SUBMIT_URL, valid_submission, format='json')

        response = api_client.post(SUBMIT_URL, {}, format='json')

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS

    def test_limited_session_gets_429_for_unreadable_body(self, api_client, valid_submission, mailoutbox):
        api_client.post(SUBMIT_URL, valid_submission, format='json')

        response = api_client.post(
            SUBMIT_URL,
            data=OVERSIZED_FORM,
            content_type='application/x-www-form-urlencoded'
        )

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS

    def test_limited_session_body_is_not_parsed(self, api_client, valid_submission, mailoutbox):
        api_client.post(SUBMIT_URL, valid_submission, format='json')

        with patch('contact.views.parse_submission') as parse:
            response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        parse.assert_not_called()

    def test_new_session_is_not_limited(self, api_client, valid_submission, mailoutbox):
        api_client.post(SUBMIT_URL, valid_submission, format='json')
        response = APIClient().post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_200_OK


@pytest.mark.django_db
class TestDependencyFailures:
    """Test database and mail failures."""

    def test_insert_failure_sends_no_email(self, api_client, valid_submission):
        with patch('contact.models.ContactFormSubmissionManager.record',
                   side_effect=DatabaseError('insert failed')), \
                patch('contact.notifications.EmailMultiAlternatives.send') as send:
            response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {'message': 'Error saving your message. Please try again later.'}
        assert send.call_count == 0

    def test_unprepared_statement_reports_database_error(self, api_client, valid_submission):
        with patch('contact.models.ContactFormSubmissionManager.record',
                   side_effect=OperationalError('no such table: contact_form')), \
                patch('contact.notifications.EmailMultiAlternatives.send') as send:
            response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {'message': 'Database error: no such table: contact_form'}
        send.assert_not_called()

    def test_second_email_failure_keeps_record_and_rate_limit_open(self, api_client, valid_submission):
        with patch('contact.notifications.EmailMultiAlternatives.send',
                   side_effect=[1, SMTPException('SMTP connect() failed.')]) as send:
            response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {'message': 'Mailer Error: SMTP connect() failed.'}
        assert send.call_count == 2
        assert ContactFormSubmission.objects.count() == 1

        # Timestamp was not recorded, so an immediate retry reaches the database
        retry = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert retry.status_code == status.HTTP_200_OK
        assert ContactFormSubmission.objects.count() == 2

    def test_unconfigured_mailer_is_a_send_failure(self, api_client, valid_submission, settings, mailoutbox):
        settings.CONTACT_EMAIL_TO = ''

        response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()['message'].startswith('Mailer Error: Mail transport is not configured')
        assert ContactFormSubmission.objects.count() == 1
        assert len(mailoutbox) == 0


@pytest.mark.django_db
class TestContactSubmissionService:
    """Test the submission pipeline outside of HTTP."""

    def test_partial_failure_is_a_result(self, valid_submission):
        session = {}
        service = ContactSubmissionService(session, clock=lambda: 5000)

        with patch('contact.notifications.EmailMultiAlternatives.send', side_effect=SMTPException('down')):
            result = service.submit(valid_submission)

        assert result.outcome == SubmissionOutcome.NOTIFY_FAILED
        assert result.is_partial_failure
        assert not result.is_client_error
        assert result.record.pk is not None
        assert SESSION_KEY not in session

    def test_success_records_timestamp(self, valid_submission, mailoutbox):
        session = {}
        service = ContactSubmissionService(session, clock=lambda: 5000)

        result = service.submit(valid_submission)

        assert result.outcome == SubmissionOutcome.COMPLETE
        assert session[SESSION_KEY] == 5000

    def test_client_outcomes(self, valid_submission):
        service = ContactSubmissionService({SESSION_KEY: 4990}, clock=lambda: 5000)
        assert service.submit(valid_submission).outcome == SubmissionOutcome.RATE_LIMITED

        service = ContactSubmissionService({}, clock=lambda: 5000)
        result = service.submit(dict(valid_submission, botField='x'))
        assert result.outcome == SubmissionOutcome.SPAM_REJECTED
        assert result.is_client_error

    def test_body_loader_skipped_when_rate_limited(self):
        loader = Mock(return_value={})
        service = ContactSubmissionService({SESSION_KEY: 4990}, clock=lambda: 5000)

        result = service.submit(loader)

        assert result.outcome == SubmissionOutcome.RATE_LIMITED
        loader.assert_not_called()

    def test_body_loader_called_when_allowed(self, valid_submission, mailoutbox):
        loader = Mock(return_value=valid_submission)
        service = ContactSubmissionService({}, clock=lambda: 5000)

        result = service.submit(loader)

        assert result.outcome == SubmissionOutcome.COMPLETE
        loader.assert_called_once_with()


@pytest.mark.django_db
class TestNotifications:
    """Test notification envelopes."""

    def test_envelopes_are_deterministic(self):
        record = ContactFormSubmission.objects.record(
            full_name='Jane Doe',
            email='jane@example.com',
            phone='+1555',
            enquiry_type='General',
            message='Line one\nLine two',
        )
        notifier = ContactNotifier()

        admin = notifier.admin_notification(record)
        reply = notifier.auto_reply(record)

        assert admin.to == ['operator@example.com']
        assert admin.from_email == 'Chidavisa Synergy Hub Contact Form <contact@example.com>'
        assert 'Line one<br>Line two' in admin.html_body
        assert reply.to == ['Jane Doe <jane@example.com>']
        assert 'Hi Jane Doe,' in reply.html_body
        assert notifier.admin_notification(record).html_body == admin.html_body

    def test_escaped_values_not_escaped_twice(self):
        record = ContactFormSubmission.objects.record(
            full_name=sanitize_value('Tom & "Jerry"'),
            email='tom@example.com',
            phone='1',
            enquiry_type='General',
            message='Hi',
        )

        body = ContactNotifier().admin_notification(record).html_body

        assert 'Tom &amp; &quot;Jerry&quot;' in body
        assert '&amp;amp;' not in body

    def test_message_has_text_body_and_html_alternative(self):
        record = ContactFormSubmission.objects.record(
            full_name=sanitize_value('Tom & "Jerry"'),
            email='tom@example.com',
            phone='1',
            enquiry_type='General',
            message=sanitize_value('Line one\n<b>Line</b> two'),
        )

        message = ContactNotifier().auto_reply(record).to_message()

        assert 'Hi Tom & "Jerry",' in message.body
        assert 'Line one\nLine two' in message.body
        assert '<' not in message.body
        html_body, mimetype = message.alternatives[0]
        assert mimetype == 'text/html'
        assert 'Hi Tom &amp; &quot;Jerry&quot;,' in html_body


class TestHealthCheck:
    """Test the health check endpoint."""

    def test_health_check(self, api_client):
        response = api_client.get('/api/health')

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'status': 'ok'}


class TestDeployment:
    """Test the gunicorn configuration."""

    def test_gunicorn_serves_the_wsgi_application(self, settings):
        path = settings.BASE_DIR / 'deployment' / 'gunicorn' / 'gunicorn_config.py'
        module_spec = importlib.util.spec_from_file_location('gunicorn_config', path)
        config = importlib.util.module_from_spec(module_spec)
        module_spec.loader.exec_module(config)

        module_path, attribute = config.wsgi_app.split(':')

        assert callable(getattr(importlib.import_module(module_path), attribute))
        assert config.timeout > 60
