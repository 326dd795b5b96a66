# Tonal Pulse Language: text <-> tone symbols <-> audio
__version__ = '2.1.0'
