"""Ring camera events to PiPup (Android TV) notifications."""
