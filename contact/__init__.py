"""
Contact Form App

Handles the public website contact form:
- Accepts form-encoded or JSON submissions
- Sanitizes every submitted value before anything else looks at it
- Session-based rate limiting and a honeypot field against bots
- Stores each submission, then emails the operator and the submitter
"""
