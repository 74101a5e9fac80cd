"""Offline rendering utilities for the in-memory host.

This package shells out to system tools:
- FluidSynth for SoundFont (SF2) rendering
- ffmpeg for volume automation, render bounds and Ogg encoding
"""
