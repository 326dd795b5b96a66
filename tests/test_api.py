"""
Tests for the TPL HTTP API
"""

import base64
import io
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from tonalpulse.tpl import Synthesizer, get_alphabet
from tonalpulse.web import create_app


@pytest.fixture
def client():
    app = create_app({'TESTING': True})
    return app.test_client()


class TestCatalog:
    """Tests for the read-only endpoints."""

    def test_presets(self, client):
        data = client.get('/api/presets').get_json()
        names = [p['name'] for p in data['presets']]
        assert names == ['bright', 'warm', 'deep', 'subsonic', 'scifi']
        assert data['default'] == 'bright'
        assert data['presets'][0]['tolerance'] == 50

    def test_prefixes(self, client):
        data = client.get('/api/prefixes').get_json()
        assert data['prefixes']['EMERGENCY']['code'] == 'ii'
        assert data['default'] == 'COMMAND'

    def test_vocabulary_search(self, client):
        data = client.get('/api/vocabulary?q=temp').get_json()
        assert [w['word'] for w in data['words']] == ['temperature']
        assert data['count'] == 1
        assert 'Systems' in data['categories']

    def test_examples(self, client):
        examples = client.get('/api/examples').get_json()['examples']
        assert examples
        for example in examples:
            assert example['written'].startswith('a/ ')

    def test_index(self, client):
        response = client.get('/')
        assert response.status_code == 200
        assert b'TONAL PULSE LANGUAGE' in response.data


class TestCodec:
    """Tests for encode and decode."""

    def test_encode(self, client):
        response = client.post('/api/encode', json={'text': 'motor start left fast', 'prefix': 'COMMAND'})
        data = response.get_json()
        assert response.status_code == 200
        assert data['success']
        assert data['written'] == 'a/ aAi eAa iAa oEo'
        assert data['decoded'] == '[Command] motor start left fast'
        assert data['duration'] > 0

    def test_encode_unknown_only(self, client):
        data = client.post('/api/encode', json={'text': 'banana'}).get_json()
        assert data['written'] == 'a/ '
        assert data['unknown'] == ['banana']
        assert data['empty']

    def test_encode_bad_prefix(self, client):
        response = client.post('/api/encode', json={'text': 'hello', 'prefix': 'SHOUT'})
        assert response.status_code == 400
        assert not response.get_json()['success']

    def test_encode_missing_text(self, client):
        assert client.post('/api/encode', json={}).status_code == 400

    def test_decode(self, client):
        data = client.post('/api/decode', json={'written': 'ae/ Ooa'}).get_json()
        assert data['text'] == '[Conditional] hello'

    def test_decode_missing_written(self, client):
        assert client.post('/api/decode', json={}).status_code == 400


class TestAudio:
    """Tests for synthesis, export and reception."""

    def test_synthesize_written(self, client):
        data = client.post('/api/synthesize', json={'written': 'a/ aAi', 'preset': 'deep'}).get_json()
        assert data['success']
        assert data['preset'] == 'deep'
        assert [e['frequency'] for e in data['events']] == [120, 120, 120, 340]
        assert data['duration'] == pytest.approx(1.5)
        assert base64.b64decode(data['audio'])[:4] == b'RIFF'

    def test_synthesize_audio_matches_synthesizer(self, client):
        data = client.post('/api/synthesize', json={'written': 'a/ aAi'}).get_json()
        assert base64.b64decode(data['audio']) == Synthesizer(get_alphabet('bright')).to_bytes('a/ aAi')

    def test_synthesize_text(self, client):
        data = client.post('/api/synthesize', json={'text': 'hello', 'prefix': 'QUESTION'}).get_json()
        assert data['written'] == 'e/ Ooa'

    def test_synthesize_bad_preset(self, client):
        response = client.post('/api/synthesize', json={'written': 'a', 'preset': 'loud'})
        assert response.status_code == 400

    def test_synthesize_nothing(self, client):
        assert client.post('/api/synthesize', json={}).status_code == 400

    def test_export(self, client):
        response = client.post('/api/export', json={'written': 'a/ aAi'})
        assert response.status_code == 200
        assert response.mimetype == 'audio/wav'
        assert 'attachment' in response.headers['Content-Disposition']
        assert 'tpl_a__aAi.wav' in response.headers['Content-Disposition']
        assert response.data[:4] == b'RIFF'

    def test_receive_json(self, client):
        wav_bytes = Synthesizer(get_alphabet('warm')).to_bytes('iOe')
        payload = {'audio': base64.b64encode(wav_bytes).decode('utf-8'), 'preset': 'warm'}
        data = client.post('/api/receive', json=payload).get_json()
        assert data['success']
        assert data['written'] == 'ioe'

    def test_receive_upload(self, client):
        wav_bytes = Synthesizer(get_alphabet('bright')).to_bytes('iOe')
        response = client.post(
            '/api/receive',
            data={'audio': (io.BytesIO(wav_bytes), 'tone.wav')},
            content_type='multipart/form-data',
        )
        assert response.get_json()['written'] == 'ioe'

    def test_receive_missing_file(self, client):
        response = client.post('/api/receive', data={}, content_type='multipart/form-data')
        assert response.status_code == 400

    def test_receive_not_wav(self, client):
        payload = {'audio': base64.b64encode(b'not a wav file').decode('utf-8')}
        assert client.post('/api/receive', json=payload).status_code == 400
