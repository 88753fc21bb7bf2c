from fastapi import FastAPI
from fastapi.responses import HTMLResponse
import os

app = FastAPI(title="Mock PMMS Server", version="1.0.0")
# Override with MOCK_RATE_30 / MOCK_RATE_15 to simulate rate moves or anomalies
RATE_30 = os.environ.get("MOCK_RATE_30", "6.30")
RATE_15 = os.environ.get("MOCK_RATE_15", "5.49")

@app.get("/health")
def health(): return {"status": "ok"}

@app.get("/pmms", response_class=HTMLResponse)
def pmms_page():
    return f"""<html><body>
<h2>Primary Mortgage Market Survey</h2>
<div class="rate"><span>30-Year Fixed Rate</span> <strong>{RATE_30}%</strong></div>
<div class="rate"><span>15-Year Fixed Rate</span> <strong>{RATE_15}%</strong></div>
</body></html>"""
