# services/booking-service/src/apps/__init__.py
