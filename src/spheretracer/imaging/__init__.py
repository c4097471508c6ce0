"""Post-processing and image output.

Components:
    tonemap: Tone mapping, gamma correction, quantisation and AOV encoders
    export: Pillow-backed image writer
"""
