"""sizediff command line interface."""
