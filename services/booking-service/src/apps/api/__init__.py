# services/booking-service/src/apps/api/__init__.py
