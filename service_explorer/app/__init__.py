"""
Explorer service package.

Keeps an in-memory catalog of free-to-play games fresh and streams random
picks to browsers over Server-Sent Events. Key modules include:

- app.main: FastAPI app and HTTP endpoints
- app.catalog: game model, catalog store, upstream client and refresh loop
- app.sse: stream sessions, wire format and session bookkeeping
"""
