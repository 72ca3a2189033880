import pytest
from app import create_app
import os
import tempfile

@pytest.fixture
def client():
    # Create a temporary file to isolate the database for each test session
    db_fd, db_path = tempfile.mkstemp(suffix='.db')

    # Configure app for testing
    app = create_app({
        'TESTING': True,
        'DATABASE': db_path,
        'SECRET_KEY': 'dev-key-for-testing',
        'WTF_CSRF_ENABLED': False,
    })

    with app.test_client() as client:
        yield client

    # Cleanup
    os.close(db_fd)
    for suffix in ('', '-wal', '-shm'):
        if os.path.exists(db_path + suffix):
            os.unlink(db_path + suffix)


@pytest.fixture
def garden(client):
    rv = client.post('/gardens/add', json={
        'id': 'loc1',
        'name': 'Backyard',
        'conditions': {'sunlight': 'Full sun', 'temperature': 'Warm', 'soil': 'Well-drained',
                       'currentSeason': 'Spring'},
    })
    assert rv.status_code == 200
    return rv.get_json()['location']


def test_dashboard_loads(client):
    """Test that the dashboard answers on an empty garden."""
    rv = client.get('/')
    assert rv.status_code == 200
    data = rv.get_json()
    assert data['success']
    assert data['location'] is None
    assert data['plantCount'] == 3


def test_plant_list_has_starter_plants(client):
    rv = client.get('/plants/')
    species = [p['species'] for p in rv.get_json()['plants']]
    assert 'Basil (Ocimum basilicum)' in species
    tomato = next(p for p in rv.get_json()['plants'] if p['id'] == 'starter-tomato')
    assert tomato['seasons'] == ['Spring', 'Summer']


def test_first_garden_becomes_active(client, garden):
    rv = client.get('/gardens/')
    assert rv.get_json()['activeLocationId'] == 'loc1'


def test_viability_route(client, garden):
    rv = client.get('/plants/starter-tomato/viability')
    data = rv.get_json()
    assert data['locationId'] == 'loc1'
    assert data['viability'] == 'High'

    rv = client.get('/plants/starter-tomato/viability?location=ghost')
    assert rv.status_code == 404


def test_planting_lifecycle(client, garden):
    rv = client.post('/plantings/add', json={'plantId': 'starter-basil', 'name': 'Pot basil'})
    assert rv.status_code == 200
    planting_id = rv.get_json()['planting']['id']

    rv = client.post(f'/plantings/{planting_id}/status', json={'status': 'Growing'})
    assert rv.status_code == 200

    rv = client.get(f'/plantings/{planting_id}')
    history = rv.get_json()['planting']['history']
    assert [h['status'] for h in history] == ['Wishlist', 'Growing']

    rv = client.post(f'/plantings/{planting_id}/status', json={'status': 'Composted'})
    assert rv.status_code == 400

    rv = client.post('/plantings/missing/status', json={'status': 'Growing'})
    assert rv.status_code == 404


def test_invalid_plant_rejected(client):
    rv = client.post('/plants/add', json={'germinationNeeds': 'no species'})
    assert rv.status_code == 400
    assert rv.get_json()['success'] is False


def test_import_canned_dataset_into_active_garden(client, garden):
    rv = client.post('/import/', json={'mode': 'add-to-existing', 'datasetKey': 'default-us'})
    assert rv.status_code == 200
    assert rv.get_json()['summary']['plantings_added'] == 3

    dashboard = client.get('/').get_json()
    assert len(dashboard['plantings']) == 3
    viabilities = [p['viability'] for p in dashboard['plantings']]
    order = {'High': 0, 'Medium': 1, 'Low': 2}
    assert viabilities == sorted(viabilities, key=order.get)
    assert dashboard['wishlistBySeason'][0]['season'] == 'Spring'


def test_import_errors(client):
    rv = client.post('/import/', json={'mode': 'merge', 'datasetKey': 'default-us'})
    assert rv.status_code == 400

    rv = client.post('/import/', json={'mode': 'replace', 'datasetKey': 'atlantis'})
    assert rv.status_code == 400

    # No location exists to receive the plantings
    rv = client.post('/import/', json={'mode': 'add', 'datasetKey': 'default-us'})
    assert rv.status_code == 400


def test_import_preview_writes_nothing(client):
    rv = client.post('/import/preview', json={'mode': 'replace', 'datasetKey': 'new-zealand'})
    plan = rv.get_json()['plan']
    assert plan['summary']['plants_deleted'] == 3
    assert len(client.get('/plants/').get_json()['plants']) == 3


def test_duplicate_removal(client, garden):
    client.post('/plants/add', json={'id': 'tomato-2', 'species': 'Tomato'})
    client.post('/plantings/add', json={'id': 'pl', 'plantId': 'tomato-2'})

    groups = client.get('/plants/duplicates').get_json()['groups']
    assert len(groups) == 1
    assert groups[0]['toDelete'] == ['starter-tomato']

    rv = client.post('/plants/duplicates/delete', json={'delete': ['tomato-2']})
    assert rv.get_json()['deleted'] == 1

    rv = client.get('/plantings/pl')
    assert rv.get_json()['planting']['plantId'] == 'starter-tomato'


def test_json_export(client, garden):
    data = client.get('/export/json').get_json()
    assert [loc['id'] for loc in data['locations']] == ['loc1']
    assert 'exportedAt' in data


def test_excel_export(client, garden):
    rv = client.get('/export/xlsx/loc1')
    assert rv.status_code == 404

    client.post('/plantings/add', json={'plantId': 'starter-carrot'})
    rv = client.get('/export/xlsx/loc1')
    assert rv.status_code == 200
    assert rv.data[:2] == b'PK'


def test_settings_page(client):
    """Test that the settings endpoint answers."""
    rv = client.get('/settings/')
    assert rv.status_code == 200


@pytest.fixture
def protected_client():
    """Client with CSRF checks left on, as in the running app."""
    db_fd, db_path = tempfile.mkstemp(suffix='.db')

    app = create_app({
        'TESTING': True,
        'DATABASE': db_path,
        'SECRET_KEY': 'dev-key-for-testing',
    })

    with app.test_client() as client:
        yield client

    os.close(db_fd)
    for suffix in ('', '-wal', '-shm'):
        if os.path.exists(db_path + suffix):
            os.unlink(db_path + suffix)


def test_post_without_csrf_token_rejected(protected_client):
    rv = protected_client.post('/gardens/add', json={'name': 'Backyard'})
    assert rv.status_code == 400
    assert rv.get_json()['success'] is False


def test_post_with_csrf_token(protected_client):
    token = protected_client.get('/csrf-token').get_json()['csrfToken']

    rv = protected_client.post('/gardens/add', json={'name': 'Backyard'},
                               headers={'X-CSRFToken': token})
    assert rv.status_code == 200
    assert rv.get_json()['location']['name'] == 'Backyard'


def test_dashboard_token_accepted(protected_client):
    token = protected_client.get('/').get_json()['csrfToken']

    rv = protected_client.post('/import/', json={'mode': 'create-new', 'datasetKey': 'default-us'},
                               headers={'X-CSRFToken': token})
    assert rv.status_code == 200
    assert rv.get_json()['summary']['plants_added'] == 3


@pytest.mark.parametrize('url', ['/plants/add', '/gardens/add', '/plantings/add', '/import/'])
def test_non_object_body_rejected(client, url):
    for body in (['not', 'an', 'object'], 'text'):
        rv = client.post(url, json=body)
        assert rv.status_code == 400
        assert rv.get_json()['success'] is False
