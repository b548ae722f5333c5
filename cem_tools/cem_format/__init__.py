"""Binary codec for the CEM (SSMF) model format: primitives, header and revisions."""
