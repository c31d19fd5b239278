"""WebSocket router - /ws live update channel."""

from fastapi import FastAPI, WebSocket


def register(app: FastAPI):
    @app.websocket("/ws")
    async def ws_updates(ws: WebSocket, token: str = "", api_key: str = ""):
        srv = app.state.server
        if srv.hub is None:
            await ws.close(code=1013, reason="Service unavailable")
            return
        owner_id = None
        if token or api_key:
            authorization = f"Bearer {token}" if token else ""
            user = await srv.auth.resolve_account(api_key, authorization)
            if user is None:
                await ws.close(code=1008, reason="Invalid credentials")
                return
            owner_id = user["id"]
        await srv.hub.handle_connection(ws, owner_id)
