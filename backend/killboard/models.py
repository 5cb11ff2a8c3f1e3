from killboard import db
import time


class PlayerStat(db.Model):
    __tablename__ = 'player_stats'
    id = db.Column(db.Integer, primary_key=True)
    # Case-sensitive display name, the identity the counters are keyed by
    name = db.Column(db.String(64), unique=True, nullable=False, index=True)
    kills = db.Column(db.Integer, default=0, nullable=False)
    deaths = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.Float, default=time.time, nullable=False)

    def to_dict(self):
        return {
            'name': self.name,
            'kills': self.kills,
            'deaths': self.deaths,
        }
