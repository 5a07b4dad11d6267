"""Services layer: level metering and the impact recording workflow.

``recording_service`` needs PyAudio; import it explicitly.
"""
