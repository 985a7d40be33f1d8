"""Real-time infrastructure — presence + event relay over WebSocket.

Events flow through two paths:
1. Client → WebSocket → lifecycle manager → relay → other clients
   (live locations, departures)
2. HTTP write → database commit → bridge → relay → all clients
   (new incidents, upvotes, comments)

Everything here is in-process: one relay, one presence store per app.
"""
