"""FastAGI / AGI client for Asterisk call-control scripts."""
