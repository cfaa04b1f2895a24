# services/booking-service/src/apps/core/__init__.py
