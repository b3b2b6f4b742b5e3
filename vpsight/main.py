"""
VPSight - Rented VPS Dashboard

FastAPI application that lists rented virtual servers with their billing
period, days to expiry and renewal state, plus an admin API for managing
the records.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select, func

from . import __version__
from .config import settings
from .models.database import init_db, VpsInstance, get_db_context
from .routes import vps_router, auth_router, instances_router, dashboard_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.logging.level),
    format=settings.logging.format
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup
    logger.info("Starting VPSight...")
    await init_db()
    logger.info(f"Database initialized ({settings.database.type})")
    if not settings.admin.is_configured:
        logger.warning("Admin credentials are not configured; admin login is disabled")

    yield

    # Shutdown
    logger.info("Shutting down...")


# Create FastAPI application
app = FastAPI(
    title="VPSight",
    description="""
    Dashboard for rented virtual servers.

    Features:
    - Billing window inferred from free-text billing cycles
    - Days to expiry with safe / warning / critical / expired bands
    - One-click and acknowledged automatic billing renewal
    - Admin record management behind a session cookie
    """,
    version=__version__,
    lifespan=lifespan
)

# CORS middleware for web dashboard
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(vps_router)
app.include_router(auth_router)
app.include_router(instances_router)
app.include_router(dashboard_router)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint with record count"""
    try:
        async with get_db_context() as db:
            result = await db.execute(select(func.count(VpsInstance.id)))
            instances = result.scalar() or 0
        database = "connected"
    except Exception:
        logger.exception("Health check could not reach the database")
        instances = 0
        database = "unavailable"

    return {
        "status": "healthy",
        "version": __version__,
        "database": database,
        "instances": instances,
        "timestamp": datetime.utcnow().isoformat()
    }


# Serve the web dashboard
@app.get("/", response_class=HTMLResponse)
async def dashboard():
    """
    Serve the web dashboard.

    The page polls /api/vps-list and renders one row per server with its
    remaining billing days as a colored progress bar.
    """
    return get_dashboard_html()


def get_dashboard_html() -> str:
    """Generate the dashboard HTML"""
    return '''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>VPSight</title>
    <link href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.2/dist/css/bootstrap.min.css" rel="stylesheet">
    <link href="https://cdn.jsdelivr.net/npm/bootstrap-icons@1.11.1/font/bootstrap-icons.css" rel="stylesheet">
    <style>
        :root {
            --bs-body-bg: #0d1117;
            --bs-body-color: #c9d1d9;
            --card-bg: #161b22;
            --border-color: #30363d;
        }

        body {
            background: var(--bs-body-bg);
            color: var(--bs-body-color);
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Oxygen, Ubuntu, sans-serif;
        }

        .card {
            background: var(--card-bg);
            border: 1px solid var(--border-color);
            border-radius: 12px;
        }

        .table { color: var(--bs-body-color); }

        .table thead th {
            border-color: var(--border-color);
            color: #8b949e;
            text-transform: uppercase;
            font-size: 0.75rem;
        }

        .table tbody td { border-color: var(--border-color); vertical-align: middle; }

        .usage-bar {
            position: relative;
            height: 1.25rem;
            min-width: 96px;
            border-radius: 4px;
            background: rgba(110, 118, 129, 0.25);
            overflow: hidden;
        }

        .usage-bar .fill { height: 100%; transition: width 0.3s ease-in-out; }
        .usage-bar .label {
            position: absolute; inset: 0;
            display: flex; align-items: center; justify-content: center;
            font-size: 0.75rem;
        }

        .fill-green { background: #3fb950; }
        .fill-orange { background: #d29922; }
        .fill-red { background: #f85149; }
        .fill-muted { background: #484f58; }

        .status-dot { width: 10px; height: 10px; border-radius: 50%; display: inline-block; }
        .status-online { background: #3fb950; }
        .status-offline { background: #f85149; }
    </style>
</head>
<body>
    <nav class="navbar px-4 py-3 border-bottom border-secondary">
        <span class="navbar-brand text-light"><i class="bi bi-hdd-rack"></i> VPSight</span>
        <button class="btn btn-sm btn-outline-light" onclick="loadVps()"><i class="bi bi-arrow-clockwise"></i> Refresh</button>
    </nav>

    <main class="container-fluid p-4">
        <div class="card">
            <div class="card-body p-0">
                <table class="table mb-0">
                    <thead>
                        <tr>
                            <th></th><th>Name</th><th>System</th><th>Location</th><th>Price</th>
                            <th>Cycle</th><th>Remaining</th><th>Billing</th><th>CPU</th><th>RAM</th><th>Disk</th>
                        </tr>
                    </thead>
                    <tbody id="vpsTable">
                        <tr><td colspan="11" class="text-center text-secondary py-4">Loading...</td></tr>
                    </tbody>
                </table>
            </div>
        </div>
    </main>

    <script>
        const API_BASE = '';

        function escapeHtml(value) {
            const div = document.createElement('div');
            div.textContent = value == null ? '' : String(value);
            return div.innerHTML;
        }

        function usageBar(percentage, color) {
            const pct = Math.max(0, Math.min(100, percentage));
            return `<div class="usage-bar"><div class="fill fill-${color}" style="width:${pct}%"></div>` +
                   `<div class="label">${pct.toFixed(1)}%</div></div>`;
        }

        function renderVps(list) {
            const tbody = document.getElementById('vpsTable');
            if (!list.length) {
                tbody.innerHTML = '<tr><td colspan="11" class="text-center text-secondary py-4">No VPS instances found.</td></tr>';
                return;
            }
            tbody.innerHTML = list.map(vps => `
                <tr>
                    <td><span class="status-dot status-${vps.status}"></span></td>
                    <td>${escapeHtml(vps.name)}</td>
                    <td>${escapeHtml(vps.system)}</td>
                    <td>${escapeHtml(vps.country_region)}</td>
                    <td>${escapeHtml(vps.price)}</td>
                    <td>${escapeHtml(vps.billing_cycle || 'N/A')}</td>
                    <td>${escapeHtml(vps.billing.days_remaining_label)}</td>
                    <td>${usageBar(vps.billing.percentage, vps.billing.color)}</td>
                    <td>${usageBar(vps.cpu.usage, 'green')}</td>
                    <td>${usageBar(vps.ram.percentage, 'green')}</td>
                    <td>${usageBar(vps.disk.percentage, 'green')}</td>
                </tr>`).join('');
        }

        async function loadVps() {
            try {
                const response = await fetch(`${API_BASE}/api/vps-list`);
                renderVps(await response.json());
            } catch (error) {
                console.error('Failed to load VPS list:', error);
            }
        }

        loadVps();
        setInterval(loadVps, 60000);
    </script>
</body>
</html>'''


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "vpsight.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.debug
    )
