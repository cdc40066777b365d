# study/models/achievement.py

class AchievementRecord:
    def __init__(self, id, user_id, type, title, description, category, unlocked_at):
        self.id = id
        self.user_id = user_id
        self.type = type
        self.title = title
        self.description = description
        self.category = category  # focus / consistency / prevention / time
        self.unlocked_at = unlocked_at

    def __repr__(self):
        return f"<AchievementRecord id={self.id} user_id={self.user_id} title={self.title!r}>"
