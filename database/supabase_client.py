"""
Supabase database client
"""
from datetime import datetime
from typing import List, Optional, Dict, Any

from supabase import create_client, Client
from loguru import logger

from app.config import get_settings


# Singleton client shared by the API and the CLI
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Return the Supabase client instance (singleton).
    The service role key is preferred so admin writes pass row level security.
    """
    global _supabase_client
    if _supabase_client is None:
        settings = get_settings()
        key = settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_KEY
        if not settings.SUPABASE_URL or not key:
            raise ValueError("Set the SUPABASE_URL and SUPABASE_KEY environment variables")
        _supabase_client = create_client(settings.SUPABASE_URL, key)
    return _supabase_client


def _first(response) -> Optional[Dict[str, Any]]:
    return response.data[0] if response.data else None


class FederationDB:
    """Federation tables: athletes, events, results, snapshots, selections"""

    def __init__(self, client: Optional[Client] = None):
        self.client: Client = client or get_supabase_client()

    # ==================== Athletes ====================

    async def list_athletes(self, active_only: bool = False) -> List[Dict[str, Any]]:
        query = self.client.table("athletes").select("*")
        if active_only:
            query = query.eq("is_active", True)
        result = query.order("last_name").order("first_name").execute()
        return result.data or []

    async def get_athlete(self, athlete_id: str) -> Optional[Dict[str, Any]]:
        result = self.client.table("athletes").select("*").eq("id", athlete_id).limit(1).execute()
        return _first(result)

    async def insert_athlete(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = self.client.table("athletes").insert(data).execute()
        return _first(result)

    async def update_athlete(self, athlete_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        result = self.client.table("athletes").update(data).eq("id", athlete_id).execute()
        return _first(result)

    # ==================== Events ====================

    async def list_events(self, published_only: bool = False) -> List[Dict[str, Any]]:
        query = self.client.table("events").select("*")
        if published_only:
            query = query.eq("is_published", True)
        result = query.order("start_date", desc=True).execute()
        return result.data or []

    async def get_event(self, event_id: str) -> Optional[Dict[str, Any]]:
        result = self.client.table("events").select("*").eq("id", event_id).limit(1).execute()
        return _first(result)

    async def insert_event(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = self.client.table("events").insert(data).execute()
        return _first(result)

    async def update_event(self, event_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        result = self.client.table("events").update(data).eq("id", event_id).execute()
        return _first(result)

    async def delete_event(self, event_id: str) -> bool:
        # results reference the event
        self.client.table("results").delete().eq("event_id", event_id).execute()
        result = self.client.table("events").delete().eq("id", event_id).execute()
        return bool(result.data)

    # ==================== Results ====================

    async def list_results(
        self,
        event_id: Optional[str] = None,
        athlete_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        query = self.client.table("results").select("*")
        if event_id:
            query = query.eq("event_id", event_id)
        if athlete_id:
            query = query.eq("athlete_id", athlete_id)
        result = query.order("final_rank").execute()
        return result.data or []

    async def get_result(self, result_id: str) -> Optional[Dict[str, Any]]:
        result = self.client.table("results").select("*").eq("id", result_id).limit(1).execute()
        return _first(result)

    async def find_result(self, athlete_id: str, event_id: str) -> Optional[Dict[str, Any]]:
        """Existing result of an athlete at an event"""
        result = self.client.table("results").select("*").eq(
            "athlete_id", athlete_id
        ).eq("event_id", event_id).limit(1).execute()
        return _first(result)

    async def insert_result(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = self.client.table("results").insert(data).execute()
        return _first(result)

    async def update_result(self, result_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        result = self.client.table("results").update(data).eq("id", result_id).execute()
        return _first(result)

    async def delete_result(self, result_id: str) -> bool:
        result = self.client.table("results").delete().eq("id", result_id).execute()
        return bool(result.data)

    # ==================== Ranking snapshots ====================

    async def list_snapshots(self, published_only: bool = False) -> List[Dict[str, Any]]:
        query = self.client.table("ranking_snapshots").select("*")
        if published_only:
            query = query.eq("is_published", True)
        result = query.order("snapshot_date", desc=True).execute()
        return result.data or []

    async def get_snapshot(self, snapshot_id: str) -> Optional[Dict[str, Any]]:
        result = self.client.table("ranking_snapshots").select("*").eq("id", snapshot_id).limit(1).execute()
        return _first(result)

    async def get_snapshot_rows(
        self,
        snapshot_id: str,
        age_category: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        query = self.client.table("ranking_snapshot_data").select("*").eq("snapshot_id", snapshot_id)
        if age_category:
            query = query.eq("age_category", age_category)
        result = query.order("ranking_position").execute()
        return result.data or []

    async def insert_snapshot(self, header: Dict[str, Any]) -> Dict[str, Any]:
        result = self.client.table("ranking_snapshots").insert(header).execute()
        return _first(result)

    async def insert_snapshot_rows(self, rows: List[Dict[str, Any]]) -> int:
        if not rows:
            return 0
        result = self.client.table("ranking_snapshot_data").insert(rows).execute()
        return len(result.data or [])

    async def publish_snapshot(self, snapshot_id: str, published: bool = True) -> Optional[Dict[str, Any]]:
        result = self.client.table("ranking_snapshots").update({
            "is_published": published,
            "published_at": datetime.now().isoformat() if published else None,
        }).eq("id", snapshot_id).execute()
        return _first(result)

    async def delete_snapshot(self, snapshot_id: str) -> bool:
        """Rows first, then the header"""
        self.client.table("ranking_snapshot_data").delete().eq("snapshot_id", snapshot_id).execute()
        result = self.client.table("ranking_snapshots").delete().eq("id", snapshot_id).execute()
        logger.info(f"Snapshot deleted: {snapshot_id}")
        return bool(result.data)

    # ==================== Selections ====================

    async def list_selection_events(self, published_only: bool = False) -> List[Dict[str, Any]]:
        query = self.client.table("selection_events").select("*")
        if published_only:
            query = query.eq("is_published", True)
        result = query.order("event_date", desc=True).execute()
        return result.data or []

    async def get_selection_event(self, selection_id: str) -> Optional[Dict[str, Any]]:
        result = self.client.table("selection_events").select("*").eq("id", selection_id).limit(1).execute()
        return _first(result)

    async def insert_selection_event(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = self.client.table("selection_events").insert(data).execute()
        return _first(result)

    async def update_selection_event(self, selection_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        result = self.client.table("selection_events").update(data).eq("id", selection_id).execute()
        return _first(result)

    async def delete_selection_event(self, selection_id: str) -> bool:
        self.client.table("selection_decisions").delete().eq("selection_event_id", selection_id).execute()
        result = self.client.table("selection_events").delete().eq("id", selection_id).execute()
        return bool(result.data)

    async def list_decisions(self, selection_id: str) -> List[Dict[str, Any]]:
        result = self.client.table("selection_decisions").select("*").eq(
            "selection_event_id", selection_id
        ).order("created_at").execute()
        return result.data or []

    async def get_decision(self, decision_id: str) -> Optional[Dict[str, Any]]:
        result = self.client.table("selection_decisions").select("*").eq("id", decision_id).limit(1).execute()
        return _first(result)

    async def find_decision(self, selection_id: str, athlete_id: str) -> Optional[Dict[str, Any]]:
        result = self.client.table("selection_decisions").select("*").eq(
            "selection_event_id", selection_id
        ).eq("athlete_id", athlete_id).limit(1).execute()
        return _first(result)

    async def insert_decision(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = self.client.table("selection_decisions").insert(data).execute()
        return _first(result)

    async def update_decision(self, decision_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        result = self.client.table("selection_decisions").update(data).eq("id", decision_id).execute()
        return _first(result)

    async def delete_decision(self, decision_id: str) -> bool:
        result = self.client.table("selection_decisions").delete().eq("id", decision_id).execute()
        return bool(result.data)

    # ==================== Profiles / stats ====================

    async def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.client.table("profiles").select("id, role").eq("id", user_id).limit(1).execute()
        return _first(result)

    async def count_rows(self, table: str, **filters) -> int:
        query = self.client.table(table).select("id", count="exact")
        for column, value in filters.items():
            query = query.eq(column, value)
        result = query.execute()
        return result.count or 0

    async def get_stats(self) -> Dict[str, int]:
        """Dashboard counters"""
        return {
            "athletes": await self.count_rows("athletes"),
            "active_athletes": await self.count_rows("athletes", is_active=True),
            "events": await self.count_rows("events"),
            "published_events": await self.count_rows("events", is_published=True),
            "results": await self.count_rows("results"),
            "snapshots": await self.count_rows("ranking_snapshots"),
            "selection_events": await self.count_rows("selection_events"),
        }
