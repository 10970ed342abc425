from unittest.mock import patch

import pytest

import app as app_module
from conftest import duplicate_error
from services.form_session_service import FormSessionRegistry
from services.record_store import TransportError
from services.waitlist_service import WaitlistFormController


@pytest.fixture
def client(store, scheduler):
    registry = FormSessionRegistry(
        factory=lambda: WaitlistFormController(store=store, scheduler=scheduler)
    )
    app_module.app.config['TESTING'] = True
    with patch.object(app_module, 'forms', registry):
        with app_module.app.test_client() as test_client:
            yield test_client


def fill_form(client, name='Ada', email='ada@example.com'):
    return client.patch('/api/waitlist/form', json={'name': name, 'email': email})


def test_health(client):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'


def test_get_form_starts_idle(client):
    response = client.get('/api/waitlist/form')

    body = response.get_json()
    assert response.status_code == 200
    assert body['phase'] == 'idle'
    assert body['name'] == ''
    assert body['error'] is None
    assert body['submit_label'] == 'Get Early Access'


def test_patch_updates_fields(client):
    response = fill_form(client)

    assert response.status_code == 200
    assert response.get_json()['email'] == 'ada@example.com'


def test_patch_rejects_unknown_fields(client):
    response = client.patch('/api/waitlist/form', json={'phone': '555'})

    assert response.status_code == 400
    assert 'phone' in response.get_json()['error']


def test_patch_requires_body(client):
    assert client.patch('/api/waitlist/form').status_code == 400


def test_submit_success(client, store):
    fill_form(client)

    response = client.post('/api/waitlist/form/submit')

    assert response.status_code == 201
    assert response.get_json()['phase'] == 'submitted'
    assert response.get_json()['submit_label'] == 'Added to Waitlist!'
    assert len(store.calls) == 1


def test_submit_success_resets_after_timer(client, scheduler):
    fill_form(client)
    client.post('/api/waitlist/form/submit')

    scheduler.fire_all()

    body = client.get('/api/waitlist/form').get_json()
    assert body['phase'] == 'idle'
    assert body['name'] == ''
    assert body['email'] == ''


def test_submit_validation_failure(client, store):
    fill_form(client, email='bob@x')

    response = client.post('/api/waitlist/form/submit')

    assert response.status_code == 400
    assert response.get_json()['error'] == 'Please enter a valid email address'
    assert store.calls == []


def test_submit_duplicate(client, store):
    store.error = duplicate_error()
    fill_form(client)

    response = client.post('/api/waitlist/form/submit')

    body = response.get_json()
    assert response.status_code == 409
    assert body['error'] == 'This email is already on the waitlist!'
    assert body['email'] == 'ada@example.com'


def test_submit_network_error(client, store):
    store.error = TransportError('connection refused')
    fill_form(client)

    response = client.post('/api/waitlist/form/submit')

    assert response.status_code == 503
    assert response.get_json()['error'] == 'Network error. Please check your connection.'


def test_forms_are_per_session(store, scheduler):
    registry = FormSessionRegistry(
        factory=lambda: WaitlistFormController(store=store, scheduler=scheduler)
    )
    with patch.object(app_module, 'forms', registry):
        first = app_module.app.test_client()
        second = app_module.app.test_client()
        fill_form(first)

        assert second.get('/api/waitlist/form').get_json()['name'] == ''
        assert len(registry) == 1


def test_delete_cancels_pending_reset(client, scheduler):
    fill_form(client)
    client.post('/api/waitlist/form/submit')

    response = client.delete('/api/waitlist/form')

    assert response.status_code == 204
    assert scheduler.tasks[0].cancelled
    assert client.get('/api/waitlist/form').get_json()['phase'] == 'idle'


def test_html_page_renders_form(client):
    response = client.get('/')

    html = response.get_data(as_text=True)
    assert response.status_code == 200
    assert 'name="name"' in html
    assert 'name="email"' in html
    assert 'Get Early Access' in html


def test_html_post_shows_error_banner(client, store):
    response = client.post('/', data={'name': '', 'email': 'ada@example.com'}, follow_redirects=True)

    html = response.get_data(as_text=True)
    assert response.status_code == 200
    assert 'Please fill in all fields' in html
    assert 'value="ada@example.com"' in html
    assert store.calls == []


def test_html_post_success(client, store):
    response = client.post('/', data={'name': 'Ada', 'email': 'ada@example.com'}, follow_redirects=True)

    assert 'Added to Waitlist!' in response.get_data(as_text=True)
    assert len(store.calls) == 1


@pytest.mark.parametrize('body', [['name'], 42, 'name'])
def test_patch_rejects_non_object_json(client, body):
    response = client.patch('/api/waitlist/form', json=body)

    assert response.status_code == 400
    assert response.get_json()['error'] == 'No data provided'


def test_reads_do_not_create_forms(store, scheduler):
    registry = FormSessionRegistry(
        factory=lambda: WaitlistFormController(store=store, scheduler=scheduler)
    )
    with patch.object(app_module, 'forms', registry):
        for _ in range(20):
            fresh = app_module.app.test_client()
            assert fresh.get('/api/waitlist/form').get_json()['phase'] == 'idle'
            assert fresh.get('/').status_code == 200

        assert len(registry) == 0


def test_first_edit_creates_the_form(client):
    fill_form(client)

    assert len(app_module.forms) == 1
    assert client.get('/api/waitlist/form').get_json()['name'] == 'Ada'
