# TPL receiver: spectrum frames in, written forms out
from .demodulator import (
    Demodulator, DetectionFrame, DetectedTone, ReceiverEvent, ReceiverState, EventKind
)
from .spectrum import SpectrumAnalyser, spectrum_frames, stream_frames
from .session import ReceiverSession, ReceiveResult, receive_samples, receive_wav

__all__ = [
    'Demodulator', 'DetectionFrame', 'DetectedTone', 'ReceiverEvent', 'ReceiverState', 'EventKind',
    'SpectrumAnalyser', 'spectrum_frames', 'stream_frames',
    'ReceiverSession', 'ReceiveResult', 'receive_samples', 'receive_wav',
]
