"""nutriforms_server — FastAPI REST API for the nutrition forms engine.

Exposes the patient form flow (overview, load, submit) and the admin
authoring/review workflow as a stateless HTTP API.
"""
