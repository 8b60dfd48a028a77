import time
from collections import OrderedDict

from flask_login import UserMixin
from sqlalchemy.orm import validates

from jackofhearts import db
from jackofhearts.errors import MalformedState

SUITS = ('hearts', 'diamonds', 'clubs', 'spades')

LOBBY = 'lobby'
PLAYING = 'playing'
VOTING = 'voting'
RESULTS = 'results'
ENDED = 'ended'
PHASES = (LOBBY, PLAYING, VOTING, RESULTS, ENDED)
# Older rows spell the terminal phase 'finished'
PHASE_ALIASES = {'finished': ENDED}

ACTIVE = 'active'
ELIMINATED = 'eliminated'
SPECTATOR = 'spectator'
STATUSES = (ACTIVE, ELIMINATED, SPECTATOR)

WINNER_JACK = 'jack'
WINNER_PLAYERS = 'players'
WINNERS = (WINNER_JACK, WINNER_PLAYERS)

# Recorded as the guess of a player who never voted
NO_VOTE = 'no_vote'


def normalize_phase(value):
    phase = PHASE_ALIASES.get(value, value)
    if phase not in PHASES:
        raise MalformedState(f'Unknown game phase {value!r}')
    return phase


class Player(UserMixin, db.Model):
    __tablename__ = 'player'
    id = db.Column(db.String(16), primary_key=True)
    game_code = db.Column(db.String(16), db.ForeignKey('game.code'), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    seat = db.Column(db.Integer, nullable=False, default=0)
    suit = db.Column(db.String(16), nullable=True)
    is_jack = db.Column(db.Boolean, default=False, nullable=False)
    is_host = db.Column(db.Boolean, default=False, nullable=False)
    status = db.Column(db.String(16), default=ACTIVE, nullable=False)
    last_vote = db.Column(db.String(16), nullable=True)
    eliminated_round = db.Column(db.Integer, nullable=True)
    game = db.relationship('Game', back_populates='players')

    @property
    def is_playing(self):
        return self.status == ACTIVE

    def to_dict(self):
        return {
            'id': self.id,
            'game_code': self.game_code,
            'name': self.name,
            'suit': self.suit,
            'is_jack': self.is_jack,
            'is_host': self.is_host,
            'status': self.status,
            'last_vote': self.last_vote,
            'has_voted': self.last_vote is not None,
            'eliminated_round': self.eliminated_round,
        }


class Game(db.Model):
    __tablename__ = 'game'
    __table_args__ = (
        db.CheckConstraint('current_round >= 0', name='ck_game_current_round'),
    )
    code = db.Column(db.String(16), primary_key=True)
    host_id = db.Column(db.String(16), nullable=False)
    phase = db.Column(db.String(16), default=LOBBY, nullable=False)
    current_round = db.Column(db.Integer, default=0, nullable=False)
    round_start_time = db.Column(db.Float, nullable=True)
    voting_end_time = db.Column(db.Float, nullable=True)
    winner = db.Column(db.String(16), nullable=True)
    created_at = db.Column(db.Float, default=time.time, nullable=False)
    players = db.relationship(
        'Player', back_populates='game', order_by='Player.seat',
        cascade='all, delete-orphan')
    round_results = db.relationship(
        'RoundResult', back_populates='game',
        order_by='RoundResult.id',
        cascade='all, delete-orphan')

    @validates('phase')
    def _validate_phase(self, key, value):
        return normalize_phase(value)

    @property
    def host(self):
        return next((p for p in self.players if p.id == self.host_id), None)

    @property
    def active_players(self):
        return [p for p in self.players if p.status == ACTIVE]

    @property
    def jack(self):
        return next((p for p in self.players if p.is_jack), None)

    def player(self, player_id):
        return next((p for p in self.players if p.id == player_id), None)

    def grouped_round_results(self):
        """Group result rows by round, listing only eliminated players."""
        rounds = OrderedDict()
        for row in self.round_results:
            eliminations = rounds.setdefault(row.round_number, [])
            if row.eliminated:
                eliminations.append(row.to_elimination())
        return [{'round': n, 'eliminations': e} for n, e in sorted(rounds.items())]

    def to_dict(self):
        if self.host_id is None or self.current_round is None:
            raise MalformedState(f'Game {self.code} is missing required fields')
        active = self.active_players
        return {
            'game_code': self.code,
            'host_id': self.host_id,
            'phase': normalize_phase(self.phase),
            'current_round': self.current_round,
            'round_start_time': self.round_start_time,
            'voting_end_time': self.voting_end_time,
            'winner': self.winner,
            'players': [p.to_dict() for p in self.players],
            'active_count': len(active),
            'votes_cast': sum(1 for p in active if p.last_vote is not None),
            'round_results': self.grouped_round_results(),
        }


class RoundResult(db.Model):
    __tablename__ = 'round_result'
    __table_args__ = (
        db.UniqueConstraint('game_code', 'round_number', 'player_id', name='uq_round_result_player'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_code = db.Column(db.String(16), db.ForeignKey('game.code'), nullable=False, index=True)
    round_number = db.Column(db.Integer, nullable=False)
    player_id = db.Column(db.String(16), nullable=False)
    player_name = db.Column(db.String(64), nullable=False)
    vote = db.Column(db.String(16), nullable=True)
    actual_suit = db.Column(db.String(16), nullable=True)
    correct = db.Column(db.Boolean, default=False, nullable=False)
    eliminated = db.Column(db.Boolean, default=False, nullable=False)
    game = db.relationship('Game', back_populates='round_results')

    def to_elimination(self):
        return {
            'player_id': self.player_id,
            'player_name': self.player_name,
            'guessed_suit': self.vote or NO_VOTE,
            'actual_suit': self.actual_suit,
        }
