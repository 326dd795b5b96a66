"""
Flask routes for the TPL codec
"""

import base64
import io
import logging

from flask import Blueprint, current_app, jsonify, render_template_string, request, send_file

from ..tpl import Synthesizer, decode, encode, estimate_duration
from ..tpl.alphabet import Alphabet, bin_tolerance
from ..tpl.profiles import FREQUENCY_PRESETS, get_profile
from ..tpl.vocabulary import EXAMPLE_SENTENCES, PREFIXES, VOCABULARY, search_vocabulary
from ..tpl.wav import export_filename, serialize
from ..receiver import receive_wav

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__)
views_bp = Blueprint('views', __name__)


def _request_data() -> dict:
    return request.get_json(silent=True) or {}


def _alphabet(data: dict) -> Alphabet:
    """Alphabet for the preset named in the request, else the configured one."""
    return Alphabet(get_profile(data.get('preset') or current_app.config['TPL_PRESET']))


def _synthesizer(data: dict) -> Synthesizer:
    return Synthesizer(_alphabet(data), sample_rate=current_app.config['TPL_SAMPLE_RATE'])


def _written_from(data: dict) -> str:
    """
    Written form to transmit: taken as-is from 'written', or encoded
    from 'text' with the requested prefix.
    """
    if data.get('written'):
        return data['written']
    if data.get('text'):
        prefix = data.get('prefix') or current_app.config['TPL_PREFIX']
        return encode(data['text'], prefix).written_form
    raise KeyError('written')


@api_bp.route('/presets', methods=['GET'])
def get_presets():
    """List frequency presets with their bin tolerance."""
    presets = []
    for profile in FREQUENCY_PRESETS.values():
        info = profile.to_dict()
        info['tolerance'] = bin_tolerance(profile)
        presets.append(info)
    return jsonify({'presets': presets, 'default': current_app.config['TPL_PRESET']})


@api_bp.route('/prefixes', methods=['GET'])
def get_prefixes():
    """List sentence prefixes."""
    return jsonify({
        'prefixes': {key: dict(info) for key, info in PREFIXES.items()},
        'default': current_app.config['TPL_PREFIX'],
    })


@api_bp.route('/vocabulary', methods=['GET'])
def get_vocabulary():
    """
    Search the vocabulary.

    Query params:
        q: substring of a word, or an exact code
        category: restrict to one category
    """
    query = request.args.get('q', '')
    category = request.args.get('category')
    words = search_vocabulary(query, category)
    return jsonify({
        'words': words,
        'count': len(words),
        'categories': list(VOCABULARY.keys()),
    })


@api_bp.route('/examples', methods=['GET'])
def get_examples():
    """Example sentences with their encodings."""
    examples = []
    for sentence in EXAMPLE_SENTENCES:
        result = encode(sentence)
        examples.append({'english': sentence, **result.to_dict()})
    return jsonify({'examples': examples})


@api_bp.route('/encode', methods=['POST'])
def encode_text():
    """
    Encode text to a written form.

    Request JSON:
        text: str - free text
        prefix: str - prefix key (COMMAND, QUESTION, ...), optional

    Returns:
        JSON with written form, unknown words and estimated duration
    """
    data = _request_data()

    try:
        prefix = data.get('prefix') or current_app.config['TPL_PREFIX']
        result = encode(data['text'], prefix)

        return jsonify({
            'success': True,
            **result.to_dict(),
            'empty': result.is_empty,
            'decoded': decode(result.written_form),
            'duration': estimate_duration(result.written_form),
        })

    except Exception as e:
        return jsonify({
            'success': False,
            'error': str(e)
        }), 400


@api_bp.route('/decode', methods=['POST'])
def decode_written():
    """
    Decode a written form to text.

    Request JSON:
        written: str - written form, e.g. "a/ aAi eAa"
    """
    data = _request_data()

    try:
        written = data['written']
        return jsonify({
            'success': True,
            'written': written,
            'text': decode(written),
        })

    except Exception as e:
        return jsonify({
            'success': False,
            'error': str(e)
        }), 400


@api_bp.route('/synthesize', methods=['POST'])
def synthesize_audio():
    """
    Synthesize a written form (or text) to audio.

    Request JSON:
        written: str - written form, or
        text: str + prefix: str - encoded first
        preset: str - frequency preset (optional)

    Returns:
        JSON with tone events, duration and base64 WAV
    """
    data = _request_data()

    try:
        written = _written_from(data)
        synthesizer = _synthesizer(data)
        synthesis = synthesizer.synthesize(written)

        wav_bytes = serialize(synthesizer.render(synthesis), synthesizer.sample_rate)
        audio_b64 = base64.b64encode(wav_bytes).decode('utf-8')

        return jsonify({
            'success': True,
            'written': written,
            'preset': synthesizer.alphabet.profile.name,
            'duration': synthesis.total_duration,
            'events': [event.to_dict() for event in synthesis.events],
            'audio': audio_b64,
            'audio_format': 'wav',
        })

    except Exception as e:
        return jsonify({
            'success': False,
            'error': str(e)
        }), 400


@api_bp.route('/export', methods=['POST'])
def export_wav():
    """Synthesize and return a WAV file download."""
    data = _request_data()

    try:
        written = _written_from(data)
        wav_bytes = _synthesizer(data).to_bytes(written)
    except Exception as e:
        return jsonify({
            'success': False,
            'error': str(e)
        }), 400

    return send_file(
        io.BytesIO(wav_bytes),
        mimetype='audio/wav',
        as_attachment=True,
        download_name=export_filename(written),
    )


@api_bp.route('/receive', methods=['POST'])
def receive_audio():
    """
    Demodulate a recorded transmission.

    Accepts:
        - File upload (multipart/form-data with 'audio' field, optional
          'preset' and 'resolve_duration' form fields)
        - JSON with base64 'audio'

    Returns:
        JSON with the received written form, its decoding and detections
    """
    try:
        if request.content_type and 'multipart/form-data' in request.content_type:
            if 'audio' not in request.files:
                return jsonify({'success': False, 'error': 'No audio file provided'}), 400
            audio_bytes = request.files['audio'].read()
            data = request.form.to_dict()
        else:
            data = _request_data()
            audio_bytes = base64.b64decode(data['audio'])

        resolve = str(data.get('resolve_duration', '')).lower() in ('1', 'true', 'yes')
        result = receive_wav(audio_bytes, _alphabet(data), resolve_duration=resolve)

        return jsonify({
            'success': True,
            **result.to_dict(),
        })

    except Exception as e:
        logger.warning("Receive failed: %s", e)
        return jsonify({
            'success': False,
            'error': str(e)
        }), 400


INDEX_TEMPLATE = '''<!doctype html>
<html>
<head><title>TPL - Tonal Pulse Language</title></head>
<body style="font-family: monospace; background: #0a0a0f; color: #e0e0e0; padding: 24px">
<h1>TPL &middot; TONAL PULSE LANGUAGE</h1>
<p>Voice: {{ preset.label }} ({{ preset.freqs[0]|int }}&ndash;{{ preset.freqs[4]|int }} Hz)</p>
<h2>API</h2>
<ul>
{% for method, path, doc in endpoints %}
  <li><b>{{ method }}</b> /api{{ path }} &mdash; {{ doc }}</li>
{% endfor %}
</ul>
</body>
</html>
'''

ENDPOINTS = [
    ('GET', '/presets', 'frequency presets'),
    ('GET', '/prefixes', 'sentence prefixes'),
    ('GET', '/vocabulary?q=&category=', 'dictionary search'),
    ('GET', '/examples', 'example sentences'),
    ('POST', '/encode', 'text to written form'),
    ('POST', '/decode', 'written form to text'),
    ('POST', '/synthesize', 'written form to tone events and WAV'),
    ('POST', '/export', 'WAV download'),
    ('POST', '/receive', 'recorded WAV to written form and text'),
]


@views_bp.route('/')
def index():
    """Serve a short overview page."""
    preset = get_profile(current_app.config['TPL_PRESET'])
    return render_template_string(INDEX_TEMPLATE, preset=preset, endpoints=ENDPOINTS)
