"""
Maps user profiles onto store collections.

Interest rows carry the interaction count they were written at. A visit
only rewrites the interests it reinforced; interests that merely decayed
are brought forward on load by applying the decay factor once per visit
processed since their row was written.
"""

import uuid
from typing import Any, Dict, Optional

from ..user_profiling.models import Interest, MoodSample, UserProfile
from ..user_profiling.preference_tracker import ProfileChanges
from .profile_store import ProfileStore, StoreTransaction

PROFILE_KEY = 'profile'
DECAY_ANCHOR = 'decay_anchor'


class ProfileRepository:
    """Reads and writes profile entities, one record per entity"""

    def __init__(self, store: ProfileStore, mood_history_size: int = 50, recent_visits_size: int = 100,
                 decay_factor: float = 0.95):
        self.store = store
        self.mood_history_size = mood_history_size
        self.recent_visits_size = recent_visits_size
        self.decay_factor = decay_factor

    @staticmethod
    def _header(profile: UserProfile):
        return {
            'user_id': profile.user_id,
            'adaptive_weights': {key: dict(value) for key, value in profile.adaptive_weights.items()},
            'interaction_count': profile.interaction_count,
            'created_at': profile.created_at.isoformat(),
            'updated_at': profile.updated_at.isoformat(),
        }

    @staticmethod
    def _interest_row(profile: UserProfile, interest: Interest) -> Dict[str, Any]:
        return {**interest.to_dict(), DECAY_ANCHOR: profile.interaction_count}

    def _bring_forward(self, row: Dict[str, Any], interaction_count: int) -> Dict[str, Any]:
        steps = max(0, interaction_count - row.get(DECAY_ANCHOR, interaction_count))
        if steps:
            row = {**row, 'strength': row['strength'] * self.decay_factor ** steps}
        return row

    def _write_header(self, txn: StoreTransaction, profile: UserProfile):
        txn.upsert('profiles', profile.user_id, PROFILE_KEY, self._header(profile), profile.updated_at)

    def save_visit_update(self, profile: UserProfile, changes: ProfileChanges):
        """Write the visit record and every reinforced or evicted entity in one transaction."""
        user_id = profile.user_id
        with self.store.transaction() as txn:
            if changes.visit is not None:
                txn.insert('interactions', user_id, changes.visit.visit_id, changes.visit.to_dict(),
                           changes.visit.timestamp)
            for topic in sorted(changes.interests):
                interest = profile.interests[topic]
                txn.upsert('interests', user_id, topic, self._interest_row(profile, interest),
                           interest.last_updated)
            for topic in sorted(changes.evicted_interests):
                txn.delete('interests', user_id, topic)
            for signature in sorted(changes.behavior_patterns):
                pattern = profile.behavior_patterns[signature]
                txn.upsert('behavior_patterns', user_id, signature, pattern.to_dict(), pattern.last_seen)
            for signature in sorted(changes.evicted_patterns):
                txn.delete('behavior_patterns', user_id, signature)
            for category in sorted(changes.preferences):
                preference = profile.preferences[category]
                txn.upsert('preferences', user_id, category, preference.to_dict(), preference.last_updated)
            for trait in sorted(changes.personality):
                estimate = profile.personality[trait]
                txn.upsert('personality_traits', user_id, trait, estimate.to_dict(), estimate.last_updated)
            self._write_header(txn, profile)

    def append_mood(self, profile: UserProfile, sample: MoodSample):
        key = f'{sample.timestamp.isoformat()}#{uuid.uuid4().hex[:8]}'
        with self.store.transaction() as txn:
            txn.insert('mood_samples', profile.user_id, key, sample.to_dict(), sample.timestamp)

    def save_profile(self, profile: UserProfile):
        """Persist a full snapshot, removing entities the profile no longer holds."""
        user_id = profile.user_id
        with self.store.transaction() as txn:
            entity_sets = (
                ('interests', {k: (self._interest_row(profile, v), v.last_updated)
                               for k, v in profile.interests.items()}),
                ('behavior_patterns', {k: (v.to_dict(), v.last_seen) for k, v in profile.behavior_patterns.items()}),
                ('preferences', {k: (v.to_dict(), v.last_updated) for k, v in profile.preferences.items()}),
                ('personality_traits', {k: (v.to_dict(), v.last_updated) for k, v in profile.personality.items()}),
            )
            for collection, entities in entity_sets:
                for stale in set(txn.keys(collection, user_id)) - set(entities):
                    txn.delete(collection, user_id, stale)
                for key, (data, timestamp) in entities.items():
                    txn.upsert(collection, user_id, key, data, timestamp)

            # Mood history is rewritten to the bounded in-memory window
            txn.delete_all(user_id, collections=('mood_samples',))
            for index, sample in enumerate(profile.mood_history):
                txn.insert('mood_samples', user_id, f'{sample.timestamp.isoformat()}#{index:04d}',
                           sample.to_dict(), sample.timestamp)

            self._write_header(txn, profile)

    def load_profile(self, user_id: str) -> Optional[UserProfile]:
        with self.store.transaction() as txn:
            header = txn.get('profiles', user_id, PROFILE_KEY)
            if header is None:
                return None

            count = header.get('interaction_count', 0)
            moods = txn.range_query('mood_samples', user_id, limit=self.mood_history_size, newest_first=True)
            visits = txn.range_query('interactions', user_id, limit=self.recent_visits_size, newest_first=True)
            return UserProfile.from_dict({
                **header,
                'interests': [self._bring_forward(row, count) for row in txn.all('interests', user_id)],
                'behavior_patterns': txn.all('behavior_patterns', user_id),
                'preferences': txn.all('preferences', user_id),
                'personality': txn.all('personality_traits', user_id),
                'mood_history': [record['data'] for record in reversed(moods)],
                'recent_visits': [record['data'] for record in reversed(visits)],
            })
