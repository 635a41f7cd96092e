from fastapi.responses import PlainTextResponse

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def preflight_response() -> PlainTextResponse:
    return PlainTextResponse("ok", headers=CORS_HEADERS)
