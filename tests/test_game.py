import unittest
from dataclasses import replace

from puyo_sim.game import (
    Action,
    Board,
    ErrorKind,
    Game,
    GameConfig,
    GameState,
    Position,
    Puyo,
    PuyoColor,
    Rotation,
    SequenceProvider,
    check_and_mark_chains,
    create_game,
    create_pair,
    remove_marked_puyos,
    start_game,
    update_game,
)


RED = Puyo(PuyoColor.RED)
BLUE = Puyo(PuyoColor.BLUE)

# Two-step chains. The red group clears first, then the puyos resting on it
# drop into the neighbouring columns and complete the second step.
CHAIN_920 = [
    ".b..b.",
    "by..yb",
    "brr.rb",
    "brrrrb",
]
CHAIN_1160 = [
    ".b..g.",
    "by..yg",
    "brr.rg",
    "brrrrg",
]
CHAIN_1480 = [
    ".b..b.",
    ".b..b.",
    "by..yb",
    "brr.rb",
    "brrrrb",
]
CHAIN_1380 = [
    ".b..b.",
    ".b..b.",
    "by..yb",
    "br..rb",
    "brrrrb",
]


class TestGame(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.provider = SequenceProvider().load()

    def _started(self, seed=0) -> Game:
        return create_game().start(self.provider, seed).unwrap()

    def _resolving(self, rows, state=GameState.CHECKING_CHAINS) -> Game:
        seq = self.provider.create_puyo_seq(0).unwrap()
        return Game(
            board=Board.from_strings(rows),
            next_pair=create_pair(RED, BLUE),
            state=state,
            puyo_seq=seq,
            move_count=1,
        )

    def _run_until_settled(self, game):
        max_chain = 0
        for _ in range(10_000):
            if game.state in (GameState.PLAYING, GameState.GAME_OVER):
                break
            game = game.update()
            max_chain = max(max_chain, game.chain_count)
        return game, max_chain

    # ---------- Lifecycle ----------
    def test_given_new_game_when_created_then_idle_and_commands_rejected(self):
        game = create_game()
        self.assertEqual(game.state, GameState.IDLE)
        self.assertIsNone(game.current_pair)
        for action in (Action.LEFT, Action.RIGHT, Action.ROTATE_CW, Action.ROTATE_CCW,
                       Action.QUICK_TURN, Action.HARD_DROP, Action.SOFT_DROP):
            result = game.apply(action)
            self.assertFalse(result.ok)
            self.assertEqual(result.kind, ErrorKind.INVALID_STATE)
        self.assertIs(game.update(), game)

    def test_given_seed_when_started_then_playing_with_first_pairs_from_sequence(self):
        game = self._started(0)
        self.assertEqual(game.state, GameState.PLAYING)
        self.assertEqual(game.score, 0)
        self.assertEqual(game.chain_count, 0)
        self.assertEqual(game.board.count(), 0)
        self.assertEqual(game.move_count, 2)
        pair = game.current_pair
        self.assertEqual((pair.main_puyo.color, pair.second_puyo.color), (PuyoColor.RED, PuyoColor.RED))
        self.assertEqual(pair.position, Position(2, 2))
        self.assertEqual(pair.rotation, Rotation.UP)
        nxt = game.next_pair
        self.assertEqual((nxt.main_puyo.color, nxt.second_puyo.color), (PuyoColor.PURPLE, PuyoColor.RED))

    def test_given_unloaded_provider_when_started_then_not_loaded_error(self):
        result = start_game(create_game(), SequenceProvider(), 0)
        self.assertFalse(result.ok)
        self.assertEqual(result.kind, ErrorKind.PUYO_SEQ_NOT_LOADED)

    def test_given_no_seed_when_started_then_random_seed_recorded(self):
        game = create_game().start(self.provider).unwrap()
        self.assertTrue(0 <= game.puyo_seq.seed < 1 << 16)

    def test_given_running_game_when_restarted_then_fresh_state(self):
        game = self._started(3)
        game = game.hard_drop().unwrap().resolve()
        restarted = game.start(self.provider, 3).unwrap()
        self.assertEqual(restarted, self._started(3))

    # ---------- Commands ----------
    def test_given_pair_at_wall_when_moving_left_then_absorbed_and_unchanged(self):
        game = self._started()
        game = game.move_left().unwrap().move_left().unwrap()
        self.assertEqual(game.current_pair.position.x, 0)
        result = game.move_left()
        self.assertTrue(result.ok)
        self.assertIs(result.value, game)

    def test_given_pair_when_moving_right_then_position_changes(self):
        game = self._started()
        moved = game.apply(Action.RIGHT).unwrap()
        self.assertEqual(moved.current_pair.position, Position(3, 2))
        # Original snapshot untouched
        self.assertEqual(game.current_pair.position, Position(2, 2))

    def test_given_boxed_pair_when_rotating_then_error_and_snapshot_intact(self):
        board = Board.from_strings(["r.r...", "g.g...", "r.r..."])
        game = Game(
            board=board,
            current_pair=create_pair(RED, BLUE, 1, 13),
            state=GameState.PLAYING,
        )
        result = game.rotate_clockwise()
        self.assertFalse(result.ok)
        self.assertEqual(result.kind, ErrorKind.INVALID_ROTATION)
        self.assertEqual(game.current_pair.rotation, Rotation.UP)
        turned = game.quick_turn().unwrap()
        self.assertEqual(turned.current_pair.rotation, Rotation.DOWN)
        self.assertEqual(turned.current_pair.main_position, Position(1, 12))

    def test_given_open_sides_when_quick_turn_then_invalid_move(self):
        result = self._started().quick_turn()
        self.assertFalse(result.ok)
        self.assertEqual(result.kind, ErrorKind.INVALID_MOVE)

    def test_given_empty_board_when_hard_drop_then_pair_lands_and_dropping(self):
        game = self._started()
        dropped = game.hard_drop().unwrap()
        self.assertEqual(dropped.state, GameState.DROPPING)
        self.assertIsNone(dropped.current_pair)
        self.assertEqual(dropped.board.get(2, 13).color, PuyoColor.RED)
        self.assertEqual(dropped.board.get(2, 12).color, PuyoColor.RED)
        self.assertEqual(dropped.board.count(), 2)
        # Commands are rejected until the board settles
        self.assertEqual(dropped.move_left().kind, ErrorKind.INVALID_STATE)
        self.assertEqual(dropped.hard_drop().kind, ErrorKind.INVALID_STATE)

    def test_given_down_pair_when_hard_drop_then_second_below_anchor(self):
        game = self._started()
        game = game.rotate_clockwise().unwrap().rotate_clockwise().unwrap()
        self.assertEqual(game.current_pair.rotation, Rotation.DOWN)
        dropped = game.hard_drop().unwrap()
        self.assertFalse(dropped.board.is_empty_at(2, 13))
        self.assertFalse(dropped.board.is_empty_at(2, 12))
        self.assertTrue(dropped.board.is_empty_at(2, 11))

    def test_given_dropped_pair_when_resolved_then_next_pair_spawns(self):
        game = self._started()
        expected_next = game.next_pair
        settled = game.hard_drop().unwrap().resolve()
        self.assertEqual(settled.state, GameState.PLAYING)
        self.assertEqual(settled.current_pair, expected_next)
        self.assertEqual(settled.move_count, 3)
        nxt = settled.next_pair
        seq = settled.puyo_seq
        self.assertEqual((nxt.main_puyo.color, nxt.second_puyo.color), seq.pair_colors(2))

    def test_given_pair_when_soft_dropping_then_moves_down_then_locks(self):
        game = self._started()
        lowered = game.move_down().unwrap()
        self.assertEqual(lowered.state, GameState.PLAYING)
        self.assertEqual(lowered.current_pair.position, Position(2, 3))
        for _ in range(10):
            lowered = lowered.apply(Action.SOFT_DROP).unwrap()
        self.assertEqual(lowered.current_pair.position, Position(2, 13))
        locked = lowered.move_down().unwrap()
        self.assertEqual(locked.state, GameState.DROPPING)
        self.assertEqual(locked.board.count(), 2)

    def test_given_none_action_when_applied_then_same_snapshot(self):
        game = self._started()
        self.assertIs(game.apply(Action.NONE).unwrap(), game)

    def test_given_same_seed_and_actions_when_replayed_then_identical_games(self):
        actions = [Action.LEFT, Action.HARD_DROP, Action.ROTATE_CW, Action.RIGHT, Action.RIGHT,
                   Action.HARD_DROP, Action.HARD_DROP, Action.ROTATE_CCW, Action.HARD_DROP]

        def play():
            game = self._started(7)
            for action in actions:
                result = game.apply(action)
                if result.ok:
                    game = result.value.resolve()
            return game

        self.assertEqual(play(), play())

    # ---------- Chains ----------
    def test_given_three_connected_when_checking_then_no_clear(self):
        result = check_and_mark_chains(Board.from_strings(["rrr..."]), 1)
        self.assertFalse(result.chains_found)
        self.assertEqual(result.score, 0)

    def test_given_four_connected_when_checking_then_marked_and_scored(self):
        result = check_and_mark_chains(Board.from_strings(["r.....", "rrr..."]), 1)
        self.assertTrue(result.chains_found)
        self.assertEqual(result.score, 40)
        self.assertEqual(result.group_sizes, (4,))
        self.assertEqual(result.colors, (PuyoColor.RED,))
        self.assertTrue(result.board.get(0, 12).is_marked)
        cleared = remove_marked_puyos(result.board)
        self.assertEqual(cleared.count(), 0)

    def test_given_group_completed_through_ghost_row_when_checking_then_no_clear(self):
        board = Board.create_empty()
        for x, y in [(0, 1), (0, 2), (1, 2), (2, 2)]:
            board = board.set(x, y, RED).unwrap()
        self.assertFalse(check_and_mark_chains(board, 1).chains_found)

    def test_given_group_in_crane_row_when_checking_then_no_clear(self):
        board = Board.create_empty()
        for x in range(4):
            board = board.set(x, 0, RED).unwrap()
        self.assertFalse(check_and_mark_chains(board, 1).chains_found)

    def test_given_custom_erase_count_when_checking_then_threshold_used(self):
        config = GameConfig(erase_count=3)
        result = check_and_mark_chains(Board.from_strings(["rrr..."]), 1, config)
        self.assertTrue(result.chains_found)

    def test_given_clear_when_flashing_then_removed_after_flash_duration(self):
        game = self._resolving(["rrrr.."])
        flashing = game.update()
        self.assertEqual(flashing.state, GameState.FLASHING_PUYOS)
        self.assertEqual(flashing.chain_count, 1)
        self.assertEqual(flashing.score, 40)
        # 31 ticks of 16 reach 496, the 32nd crosses 500
        for _ in range(31):
            flashing = flashing.update()
        self.assertEqual(flashing.state, GameState.FLASHING_PUYOS)
        self.assertEqual(flashing.flashing_time, 496)
        dropping = flashing.update()
        self.assertEqual(dropping.state, GameState.DROPPING)
        self.assertEqual(dropping.board.count(), 0)

    def test_given_elapsed_time_when_flashing_then_elapsed_accumulated(self):
        flashing = self._resolving(["rrrr.."]).update()
        half = update_game(flashing, 250)
        self.assertEqual(half.flashing_time, 250)
        self.assertEqual(update_game(half, 250).state, GameState.DROPPING)

    def _assert_chain_score(self, rows, expected):
        game, max_chain = self._run_until_settled(self._resolving(rows, GameState.DROPPING))
        self.assertEqual(game.state, GameState.PLAYING)
        self.assertEqual(max_chain, 2)
        self.assertEqual(game.chain_count, 0)
        self.assertEqual(game.score, expected)

    def test_given_two_step_chain_one_color_when_resolved_then_920(self):
        self._assert_chain_score(CHAIN_920, 920)

    def test_given_two_step_chain_two_colors_when_resolved_then_1160(self):
        self._assert_chain_score(CHAIN_1160, 1160)

    def test_given_two_step_chain_of_six_and_fives_when_resolved_then_1380(self):
        self._assert_chain_score(CHAIN_1380, 1380)

    def test_given_two_step_chain_of_seven_and_fives_when_resolved_then_1480(self):
        self._assert_chain_score(CHAIN_1480, 1480)

    def test_given_resolving_game_when_resolve_called_then_stops_at_playing(self):
        game = self._resolving(CHAIN_920).resolve()
        self.assertEqual(game.state, GameState.PLAYING)
        self.assertEqual(game.score, 920)
        self.assertIsNotNone(game.current_pair)

    def test_given_kicked_pair_when_played_into_crane_row_then_puyo_stays_and_never_chains(self):
        # Crane placement is reachable: kick the anchor up into the ghost row,
        # turn the pair upright and slide it onto a full column.
        rows = []
        for y in range(2, 14):
            c1 = "rgb"[y % 3]
            c2 = "rgb"[(y + 1) % 3] if y >= 3 else "."
            rows.append("." + c1 + c2 + "...")
        game = replace(
            self._resolving(rows, GameState.PLAYING),
            current_pair=create_pair(RED, BLUE),
        )
        for _ in range(4):
            game = game.rotate_clockwise().unwrap()
        self.assertEqual(game.current_pair.position, Position(2, 1))
        self.assertEqual(game.current_pair.second_position, Position(2, 0))
        game = game.move_left().unwrap()
        self.assertEqual(game.current_pair.position, Position(1, 1))
        game = game.hard_drop().unwrap().resolve()
        self.assertEqual(game.state, GameState.PLAYING)
        self.assertEqual(game.board.get(1, 0), BLUE)
        self.assertEqual(game.board.get(1, 1), RED)
        self.assertFalse(check_and_mark_chains(game.board, 1).chains_found)

    # ---------- Game over ----------
    def test_given_blocked_spawn_when_spawning_then_game_over(self):
        column = "rgbrgbrgbrgb"
        rows = ["..%s..." % column[i] for i in range(12)]
        game = self._resolving(rows).update()
        self.assertEqual(game.state, GameState.GAME_OVER)
        self.assertTrue(game.is_over)
        self.assertIsNone(game.current_pair)
        self.assertEqual(game.move_left().kind, ErrorKind.INVALID_STATE)
        self.assertIs(game.update(), game)

    def test_given_stacked_column_when_dropping_repeatedly_then_game_ends(self):
        provider = SequenceProvider.from_text("rgby" * 64).load()
        game = create_game().start(provider, 0).unwrap()
        drops = 0
        while not game.is_over and drops < 20:
            game = game.hard_drop().unwrap().resolve()
            drops += 1
        self.assertTrue(game.is_over)
        self.assertEqual(drops, 6)
        self.assertEqual(game.score, 0)
        self.assertEqual(game.board.count(), 12)


if __name__ == "__main__":
    unittest.main()
