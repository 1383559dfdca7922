from initials import db
from initials.constants import CODE_ADJECTIVES, CODE_NOUNS, PLAYER_NAME_MAX_LENGTH, team_name
from initials.services.games.letters import RowPrompt
import json
import random
import time


def generate_game_code(rng=random):
    """Adjective + noun, e.g. 'IcyApple'. Uniqueness is enforced on insert."""
    return rng.choice(CODE_ADJECTIVES) + rng.choice(CODE_NOUNS)


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), unique=True, nullable=False, index=True)
    num_teams = db.Column(db.Integer, nullable=False, default=2)
    timer_duration = db.Column(db.Integer, nullable=False, default=60)
    status = db.Column(db.String(16), nullable=False, default='waiting')  # waiting, playing, scoring
    started_at = db.Column(db.Float, nullable=True)  # epoch seconds
    row_prompts = db.Column(db.Text, nullable=False)  # JSON-encoded list of 26 two-letter strings
    first_pattern = db.Column(db.String(32), nullable=True)
    second_pattern = db.Column(db.String(32), nullable=True)
    initiator_id = db.Column(db.Integer, db.ForeignKey('player.id', name='fk_game_initiator_id', use_alter=True), nullable=True)
    created_at = db.Column(db.Float, nullable=False, default=time.time)
    players = db.relationship('Player', back_populates='game', foreign_keys='Player.game_id',
                              order_by='Player.joined_at', cascade='all, delete-orphan')

    @classmethod
    def find_by_code(cls, code):
        if not code:
            return None
        return cls.query.filter(db.func.lower(cls.code) == code.strip().lower()).first()

    @property
    def prompts(self):
        pairs = json.loads(self.row_prompts or '[]')
        return [RowPrompt(i, pair[0], pair[1]) for i, pair in enumerate(pairs)]

    @prompts.setter
    def prompts(self, prompts):
        self.row_prompts = json.dumps([p.initials for p in prompts])

    @property
    def team_numbers(self):
        return list(range(1, (self.num_teams or 0) + 1))

    def teams(self):
        counts = {}
        for p in self.players:
            if p.team_number:
                counts[p.team_number] = counts.get(p.team_number, 0) + 1
        return [
            {'team_number': n, 'team_name': team_name(n), 'player_count': counts.get(n, 0)}
            for n in self.team_numbers
        ]

    def to_dict(self, include_players=True):
        data = {
            'id': self.id,
            'code': self.code,
            'num_teams': self.num_teams,
            'timer_duration': self.timer_duration,
            'status': self.status,
            'started_at': self.started_at,
            'row_prompts': [p.to_dict() for p in self.prompts],
            'first_pattern': self.first_pattern,
            'second_pattern': self.second_pattern,
            'initiator_id': self.initiator_id,
        }
        if include_players:
            data['players'] = [p.to_dict() for p in self.players]
            data['teams'] = self.teams()
        return data


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    name = db.Column(db.String(PLAYER_NAME_MAX_LENGTH), nullable=False)
    is_initiator = db.Column(db.Boolean, default=False, nullable=False)
    team_number = db.Column(db.Integer, nullable=True)
    joined_at = db.Column(db.Float, nullable=False, default=time.time)
    game = db.relationship('Game', back_populates='players', foreign_keys=[game_id])

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'name': self.name,
            'is_initiator': self.is_initiator,
            'team_number': self.team_number,
            'team_name': team_name(self.team_number) if self.team_number else None,
            'joined_at': self.joined_at,
        }


class Answer(db.Model):
    """One team's word in one board cell; the constraint keeps a single row per cell."""
    __tablename__ = 'answer'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'team_number', 'row_index', 'column_number', name='uq_answer_cell'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    team_number = db.Column(db.Integer, nullable=False)
    row_index = db.Column(db.Integer, nullable=False)
    column_number = db.Column(db.Integer, nullable=False)  # 2 = first word, 3 = second word
    text = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.Float, nullable=False, default=time.time)

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'player_id': self.player_id,
            'team_number': self.team_number,
            'row_index': self.row_index,
            'column_number': self.column_number,
            'text': self.text,
        }


class ScoreAdjustment(db.Model):
    """Initiator override and/or lookup result for one (row, team) cell."""
    __tablename__ = 'score_adjustment'
    __table_args__ = (db.UniqueConstraint('game_id', 'row_index', 'team_number', name='uq_score_adjustment_cell'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    row_index = db.Column(db.Integer, nullable=False)
    team_number = db.Column(db.Integer, nullable=False)
    answer_key = db.Column(db.Text, nullable=False)
    score = db.Column(db.Integer, nullable=True)
    validation = db.Column(db.String(16), nullable=True)  # valid, invalid
    canonical_url = db.Column(db.Text, nullable=True)

    def to_dict(self):
        return {
            'game_id': self.game_id,
            'row_index': self.row_index,
            'team_number': self.team_number,
            'score': self.score,
            'validation': self.validation,
            'canonical_url': self.canonical_url,
        }
