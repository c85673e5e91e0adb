"""Meeting room scheduling web application."""
