# habit_tracker/models/__init__.py
from habit_tracker.models.users import User
from habit_tracker.models.habit import Category, Habit, HabitCompletion
