from memorygame.models import Player, RoomConfig
from memorygame.services.games.registry import RoomRegistry


def test_create_room_merges_config_and_is_noop_when_present():
    registry = RoomRegistry(RoomConfig(grid_size=4, theme='emojis', max_players=2))
    room = registry.create_room('abc', {'grid_size': 2, 'theme': None})
    assert room.config.grid_size == 2
    assert room.config.theme == 'emojis'
    assert room.config.max_players == 2

    again = registry.create_room('abc', {'grid_size': 6})
    assert again is room
    assert room.config.grid_size == 2
    assert len(registry) == 1


def test_add_player_seeds_score_and_reverse_lookup(bare_registry):
    bare_registry.create_room('R')
    assert bare_registry.add_player('R', Player(id='s1', name='Alice'))
    room = bare_registry.get_room('R')
    assert room.scores == {'s1': 0}
    assert bare_registry.room_id_for('s1') == 'R'
    assert bare_registry.room_for('s1') is room


def test_add_player_fails_for_missing_or_full_room(bare_registry):
    assert not bare_registry.add_player('missing', Player(id='s1', name='Alice'))
    bare_registry.create_room('R', {'max_players': 2})
    assert bare_registry.add_player('R', Player(id='s1', name='Alice'))
    assert bare_registry.add_player('R', Player(id='s2', name='Bob'))
    assert not bare_registry.add_player('R', Player(id='s3', name='Cara'))
    room = bare_registry.get_room('R')
    assert [p.id for p in room.players] == ['s1', 's2']
    assert 's3' not in room.scores
    assert bare_registry.room_id_for('s3') is None


def test_remove_player_deletes_empty_room_and_is_idempotent(two_player_room, bare_registry):
    removed = bare_registry.remove_player('ROOM1', 'p1')
    assert removed.name == 'Alice'
    assert two_player_room.scores == {'p2': 0}
    assert bare_registry.room_id_for('p1') is None
    assert bare_registry.remove_player('ROOM1', 'p1') is None

    bare_registry.remove_player('ROOM1', 'p2')
    assert bare_registry.get_room('ROOM1') is None
    assert bare_registry.remove_player('ROOM1', 'p2') is None


def test_rekey_player_moves_score_and_lookup(two_player_room, bare_registry):
    two_player_room.scores['p2'] = 3
    two_player_room.paused_by = 'p2'
    player = bare_registry.rekey_player('ROOM1', 'p2', 'p2-new')
    assert player.id == 'p2-new'
    assert two_player_room.scores == {'p1': 0, 'p2-new': 3}
    assert two_player_room.paused_by == 'p2-new'
    assert bare_registry.room_id_for('p2-new') == 'ROOM1'
    assert bare_registry.room_id_for('p2') is None


def test_delete_room_clears_reverse_lookups(two_player_room, bare_registry):
    bare_registry.delete_room('ROOM1')
    assert 'ROOM1' not in bare_registry
    assert bare_registry.room_for('p1') is None
    assert bare_registry.stats() == {'rooms': 0, 'players': 0}


def test_generate_room_id_is_unique(bare_registry):
    bare_registry.create_room('AAAAAA')
    code = bare_registry.generate_room_id()
    assert len(code) == 6
    assert code.isalnum()
    assert code not in bare_registry


def test_forget_connection_only_clears_matching_room(two_player_room, bare_registry):
    assert bare_registry.forget_connection('p1', 'OTHER') is None
    assert bare_registry.room_id_for('p1') == 'ROOM1'
    assert bare_registry.forget_connection('p1', 'ROOM1') == 'ROOM1'
    assert bare_registry.room_id_for('p1') is None
