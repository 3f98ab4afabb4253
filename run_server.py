"""
Start a local development server for the Ledgerbook API.
"""

import uvicorn

from ledgerbook.config import settings

if __name__ == "__main__":
    print("=" * 60)
    print("Starting Ledgerbook Backend")
    print("=" * 60)
    print()
    print("API Endpoints:")
    print("   - Health Check:  GET  http://localhost:8000/health")
    print("   - Session:       GET  http://localhost:8000/auth/me")
    print("   - Organizations: GET  http://localhost:8000/organizations")
    print("   - API Docs:           http://localhost:8000/docs")
    print()
    print("Authentication:")
    print("   All endpoints (except /health) require:")
    print("   Authorization: Bearer <supabase access token>")
    print()
    print("Try it:")
    print('   curl "http://localhost:8000/organizations/<org-id>/reports/dashboard" \\')
    print('     -H "Authorization: Bearer $TOKEN"')
    print()
    print("=" * 60)
    print("Starting server on http://localhost:8000")
    print("Press Ctrl+C to stop")
    print("=" * 60)
    print()

    uvicorn.run(
        "ledgerbook.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development(),
        log_level=settings.LOG_LEVEL.lower()
    )
