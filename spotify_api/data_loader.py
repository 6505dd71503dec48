from typing import Any, Dict, List, Optional

from utils.concurrency import join_all

from .client import SpotifyClient

FEATURE_FIELDS = ("danceability", "energy", "valence", "tempo", "loudness")


class SpotifyDataLoader:
    """High-level catalog helpers that return compact, agent-friendly dicts.

    Shapes:
      - track: name, artist (comma-joined), album, popularity, preview_url, spotify_url
      - artist: name, genres, popularity, follower_count, top_tracks (names only)
      - features: danceability, energy, valence, tempo, loudness
    """

    def __init__(self, client: SpotifyClient, *, market: str = "US"):
        self.client = client
        self.market = market

    async def search_tracks(self, query: str, *, limit: int = 10) -> List[Dict[str, Any]]:
        page = await self.client.search_tracks(query, limit=limit)
        items = ((page.get("tracks") or {}).get("items")) or []

        tracks: List[Dict[str, Any]] = []
        for item in items:
            normalized = self._normalize_track(item)
            if normalized:
                tracks.append(normalized)
        return tracks

    async def artist_info(self, artist_id: str) -> Dict[str, Any]:
        """Artist metadata plus top track names; both lookups must succeed."""

        artist, top_tracks = await join_all(
            self.client.artist(artist_id),
            self.client.artist_top_tracks(artist_id, market=self.market),
        )
        return self._normalize_artist(artist, top_tracks)

    async def track_features(self, track_id: str) -> Dict[str, Any]:
        features = await self.client.audio_features(track_id)
        return self._normalize_features(features)

    # -----------------
    # Normalization
    # -----------------

    @staticmethod
    def _normalize_track(track: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(track, dict):
            return None

        artists = track.get("artists") or []
        artist_names = [str(a.get("name")) for a in artists if isinstance(a, dict) and a.get("name")]

        return {
            "name": track.get("name"),
            "artist": ", ".join(artist_names),
            "album": (track.get("album") or {}).get("name"),
            "popularity": track.get("popularity"),
            "preview_url": track.get("preview_url"),
            "spotify_url": (track.get("external_urls") or {}).get("spotify"),
        }

    @staticmethod
    def _normalize_artist(artist: Dict[str, Any], top_tracks: Dict[str, Any]) -> Dict[str, Any]:
        tracks = top_tracks.get("tracks") or []
        return {
            "name": artist.get("name"),
            "genres": list(artist.get("genres") or []),
            "popularity": artist.get("popularity"),
            "follower_count": (artist.get("followers") or {}).get("total"),
            "top_tracks": [t.get("name") for t in tracks if isinstance(t, dict)],
        }

    @staticmethod
    def _normalize_features(features: Dict[str, Any]) -> Dict[str, Any]:
        return {field: features.get(field) for field in FEATURE_FIELDS}
