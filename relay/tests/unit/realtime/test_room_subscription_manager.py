"""Tests for RoomSubscriptionManager."""

from relay.realtime.room_subscription_manager import RoomSubscriptionManager


class TestRoomSubscriptionManager:
    def test_subscribe_tracks_both_directions(self):
        manager = RoomSubscriptionManager()

        assert manager.subscribe_to_room("c1", "general") is True
        assert manager.subscribe_to_room("c1", "general") is False
        manager.subscribe_to_room("c1", "random")

        assert manager.get_room_subscribers("general") == {"c1"}
        assert manager.get_connection_rooms("c1") == {"general", "random"}

    def test_unknown_room_has_no_subscribers(self):
        assert RoomSubscriptionManager().get_room_subscribers("nowhere") == set()

    def test_unsubscribe_all_removes_every_room(self):
        manager = RoomSubscriptionManager()
        manager.subscribe_to_room("c1", "general")
        manager.subscribe_to_room("c1", "random")
        manager.subscribe_to_room("c2", "general")

        rooms = manager.unsubscribe_all("c1")

        assert rooms == {"general", "random"}
        assert manager.get_room_subscribers("general") == {"c2"}
        assert "random" not in manager.room_subscriptions
        assert manager.get_connection_rooms("c1") == set()

    def test_returned_sets_are_copies(self):
        manager = RoomSubscriptionManager()
        manager.subscribe_to_room("c1", "general")

        manager.get_room_subscribers("general").add("intruder")

        assert manager.get_room_subscribers("general") == {"c1"}
