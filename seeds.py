from datetime import timedelta

from car_rental import create_app
from car_rental.utils.constants import RentalStatus

ADMINS = [
    ("admin@carrentaldashboard.ro", "Admin123", "Nicula Mihai"),
    ("manager@carrentaldashboard.ro", "Manager123", "Gheorghe Ionut"),
]

CARS = [
    {"brand": "Audi", "model": "A4", "year": 2022, "license_plate": "B101AUD", "color": "Gray",
     "category": "Sedan", "daily_rate": 70, "image_url": "/assets/cars/audi-a4.jpeg",
     "features": "Navigation, Heated seats, Bluetooth", "kilometers": 18500, "fuel_level": 80,
     "fuel_type": "Diesel"},
    {"brand": "Audi", "model": "A4", "year": 2023, "license_plate": "B102AUD", "color": "Black",
     "category": "Sedan", "daily_rate": 72, "image_url": "/assets/cars/audi-a4.jpeg",
     "features": "Navigation, Adaptive cruise control", "kilometers": 9200, "fuel_level": 100,
     "fuel_type": "Diesel"},
    {"brand": "BMW", "model": "X5", "year": 2023, "license_plate": "B201BMW", "color": "White",
     "category": "SUV", "daily_rate": 95, "image_url": "/assets/cars/bmw-x5.jpeg",
     "features": "M Sport, 360 camera, Head-up display", "kilometers": 12000, "fuel_level": 65,
     "fuel_type": "Petrol"},
    {"brand": "BMW", "model": "X5", "year": 2023, "license_plate": "B203BMW", "color": "Blue",
     "category": "SUV", "daily_rate": 95, "status": "maintenance", "image_url": "/assets/cars/bmw-x5.jpeg",
     "features": "Panoramic roof", "kilometers": 30400, "fuel_level": 20, "fuel_type": "Petrol"},
    {"brand": "Chevrolet", "model": "Equinox", "year": 2022, "license_plate": "B301CHV", "color": "Black",
     "category": "SUV", "daily_rate": 55, "image_url": "/assets/cars/chevrolet-equinox.jpeg",
     "features": "Android Auto, Apple CarPlay", "kilometers": 41000, "fuel_level": 50,
     "fuel_type": "Petrol"},
]

CUSTOMERS = [
    {"first_name": "Andrei", "last_name": "Popescu", "email": "andrei.popescu@gmail.com",
     "phone": "0722123456", "driver_license": "B 123456", "address": "Strada Victoriei 10, Bucuresti",
     "license_verified": True},
    {"first_name": "Maria", "last_name": "Ionescu", "email": "maria.ionescu@yahoo.com",
     "phone": "0733234567", "driver_license": "CT 234567", "address": "Bulevardul Mamaia 25, Constanta"},
    {"first_name": "Alexandru", "last_name": "Dumitrescu", "email": "alex.dumitrescu@gmail.com",
     "phone": "0744345678", "driver_license": "IS 345678", "address": "Strada Stefan cel Mare 5, Iasi",
     "license_verified": True},
    {"first_name": "Elena", "last_name": "Popa", "email": "elena.popa@gmail.com",
     "phone": "0755456789", "driver_license": "CJ 456789", "address": "Bulevardul Eroilor 15, Cluj-Napoca"},
]


def main():
    app = create_app({"DEFAULT_ADMIN_EMAIL": None})
    with app.app_context():
        svc = app.extensions["car_rental"]
        store = svc["store"]

        # ---- Admin accounts (create only if missing) ----
        for email, password, name in ADMINS:
            if not store.find_admin(email):
                svc["auth"].create_admin(email, password, name=name)

        # ---- Demo fleet, customers and rentals (create only if no cars exist) ----
        if not store.cars:
            cars = [svc["cars"].create_car(data) for data in CARS]
            customers = [svc["customers"].create_customer(data) for data in CUSTOMERS]
            today = svc["rentals"].today()

            def book(car, customer, start_offset, days, notes=None):
                start = today + timedelta(days=start_offset)
                quote = svc["rentals"].quote(car["id"], start, start + timedelta(days=days - 1))
                return svc["rentals"].create_rental({
                    "car_id": car["id"], "customer_id": customer["id"],
                    "start_date": quote["start_date"], "end_date": quote["end_date"],
                    "total_cost": quote["total_cost"], "notes": notes,
                })

            # finished trip, then a running one, then an upcoming booking
            past = book(cars[0], customers[0], -20, 5)
            svc["rentals"].update_rental_status(past["id"], RentalStatus.ACTIVE)
            svc["rentals"].update_rental_status(past["id"], RentalStatus.COMPLETED)

            running = book(cars[1], customers[2], -2, 6, notes="Airport pickup")
            svc["rentals"].update_rental_status(running["id"], RentalStatus.ACTIVE)

            book(cars[2], customers[1], 3, 4)

        print("Seed complete.")
        for email, password, _ in ADMINS:
            print(f"Admin login: {email} / {password}")


if __name__ == "__main__":
    main()
