#!/usr/bin/env python3
"""
Avvio del backend CRM in sviluppo (ricaricamento automatico)
"""
import uvicorn

if __name__ == "__main__":
    print("Avvio MT Dealer CRM Backend...")
    print("API disponibile su: http://localhost:8000/api/v1")
    print("Documentazione Swagger (solo CRM_DEBUG=true): http://localhost:8000/docs\n")

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["app"],
    )
