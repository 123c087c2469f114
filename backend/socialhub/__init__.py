"""SocialHub backend."""
