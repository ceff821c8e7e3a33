"""
Initialize the gate log database: creates the durable slot with all tables,
or upgrades an existing one in place.
Run once before first launch, or after upgrading.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from gatelog.config import settings
from gatelog.exceptions import GateLogError
from gatelog.runtime import bootstrap
from gatelog.services.record_store import EntityKind


def main():
    print("🗄️  Gate Log DB Initialization")
    print("=" * 40)
    print(f"📁 Data dir:  {settings.DATA_DIR}")
    print(f"🔑 Slot key:  {settings.SLOT_KEY}")
    print(f"🖼️  Evidence: {settings.BLOB_DATABASE_URL}")

    try:
        runtime = bootstrap()
    except GateLogError as e:
        print(f"❌ Cannot open the saved database: {e}")
        print("\nThe slot file was left untouched. Move it aside to start fresh.")
        sys.exit(1)

    report = runtime.migration_report
    if report.applied:
        print(f"✅ Migrations applied: {', '.join(report.applied)}")
    for column, error in report.failed.items():
        print(f"⚠️  Migration failed for {column}: {error}")

    store = runtime.record_store
    print(f"\n📊 Tables:")
    for kind in EntityKind:
        print(f"   ✓ {kind.value}: {len(store.query_all(kind))} row(s)")
    print(f"\n💾 Snapshot size: {len(store.export_bytes())} bytes")
    runtime.close()

    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn gatelog.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT}")


if __name__ == "__main__":
    main()
