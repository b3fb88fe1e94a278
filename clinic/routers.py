"""
URL mappings for the portal.

Dashboard pages live under ``/dashboard`` (the middleware sends visitors
without a token to ``/sign-in``), the public site at the root and the
JSON widgets under ``/widgets``.  Trailing slashes are omitted.
"""
from django.urls import path

from .views import (
    appointments,
    auth,
    doctors,
    gallery,
    health,
    home,
    inventory,
    pharmacy,
    prescriptions,
    public,
    rooms,
    widgets,
)

app_name = 'clinic'

urlpatterns = [
    # Auth
    path('sign-in', auth.sign_in, name='sign_in'),
    path('sign-out', auth.sign_out, name='sign_out'),
    path('dashboard/profile', auth.profile, name='profile'),

    # Dashboard
    path('dashboard', home.home, name='home'),

    path('dashboard/appointments', appointments.appointment_list, name='appointments'),
    path('dashboard/appointments/calendar', appointments.appointment_calendar, name='appointments_calendar'),
    path('dashboard/appointments/new', appointments.appointment_create, name='appointment_create'),
    path('dashboard/appointments/<int:pk>', appointments.appointment_detail, name='appointment_detail'),
    path('dashboard/appointments/<int:pk>/edit', appointments.appointment_edit, name='appointment_edit'),
    path('dashboard/appointments/<int:pk>/delete', appointments.appointment_delete, name='appointment_delete'),
    path('dashboard/appointments/<int:pk>/status', appointments.appointment_status, name='appointment_status'),
    path('dashboard/appointments/<int:appointment_id>/prescription', prescriptions.prescription_create,
         name='prescription_create'),

    path('dashboard/prescriptions', prescriptions.prescription_list, name='prescriptions'),
    path('dashboard/prescriptions/<int:pk>', prescriptions.prescription_detail, name='prescription_detail'),

    path('dashboard/pharmacy', pharmacy.pharmacy, name='pharmacy'),
    path('dashboard/pharmacy/<int:pk>/dispense', pharmacy.dispense, name='dispense'),
    path('dashboard/medicines', pharmacy.medicine_list, name='medicines'),
    path('dashboard/medicines/new', pharmacy.medicine_create, name='medicine_create'),
    path('dashboard/medicines/<int:pk>/edit', pharmacy.medicine_edit, name='medicine_edit'),
    path('dashboard/medicines/<int:pk>/delete', pharmacy.medicine_delete, name='medicine_delete'),
    path('dashboard/medicines/<int:pk>/restock', pharmacy.medicine_restock, name='medicine_restock'),

    path('dashboard/inventory', inventory.item_list, name='inventory'),
    path('dashboard/inventory/new', inventory.item_create, name='inventory_create'),
    path('dashboard/inventory/<int:pk>', inventory.item_detail, name='inventory_detail'),
    path('dashboard/inventory/<int:pk>/edit', inventory.item_edit, name='inventory_edit'),
    path('dashboard/inventory/<int:pk>/delete', inventory.item_delete, name='inventory_delete'),
    path('dashboard/inventory/requests', inventory.request_list, name='inventory_requests'),
    path('dashboard/inventory/requests/<int:pk>/issue', inventory.issue_stock, name='inventory_issue'),
    path('dashboard/inventory/requests/<int:pk>/<str:action>', inventory.request_action,
         name='inventory_request_action'),

    path('dashboard/rooms', rooms.room_list, name='rooms'),
    path('dashboard/rooms/new', rooms.room_create, name='room_create'),
    path('dashboard/rooms/<int:pk>/edit', rooms.room_edit, name='room_edit'),
    path('dashboard/rooms/<int:pk>/delete', rooms.room_delete, name='room_delete'),
    path('dashboard/rooms/<int:room_id>/beds', rooms.bed_list, name='beds'),
    path('dashboard/beds/new', rooms.bed_create, name='bed_create'),
    path('dashboard/beds/<int:pk>/edit', rooms.bed_edit, name='bed_edit'),
    path('dashboard/beds/<int:pk>/delete', rooms.bed_delete, name='bed_delete'),
    path('dashboard/admissions', rooms.admission_list, name='admissions'),
    path('dashboard/admissions/new', rooms.admit, name='admit'),
    path('dashboard/admissions/<int:pk>/process', rooms.process_admission, name='admission_process'),
    path('dashboard/admissions/<int:pk>/discharge', rooms.discharge, name='admission_discharge'),

    path('dashboard/gallery', gallery.gallery_list, name='gallery'),
    path('dashboard/gallery/new', gallery.gallery_create, name='gallery_create'),
    path('dashboard/gallery/<int:pk>/edit', gallery.gallery_edit, name='gallery_edit'),
    path('dashboard/gallery/<int:pk>/delete', gallery.gallery_delete, name='gallery_delete'),

    path('dashboard/doctors', doctors.doctor_list, name='doctors'),
    path('dashboard/doctors/<int:pk>', doctors.doctor_detail, name='doctor_detail'),
    path('dashboard/doctors/<int:pk>/delete', doctors.doctor_delete, name='doctor_delete'),

    # Public site
    path('', public.home, name='site_home'),
    path('doctors', public.doctors, name='site_doctors'),
    path('doctors/<int:pk>', public.doctor_profile, name='site_doctor'),
    path('gallery', public.gallery, name='site_gallery'),
    path('plans', public.plans, name='site_plans'),
    path('plans/<int:pk>', public.plan_detail, name='site_plan'),
    path('appointment', public.booking, name='site_booking'),

    # JSON widgets
    path('widgets/calendar', widgets.calendar_month, name='widget_calendar'),
    path('widgets/time-slots', widgets.TimeSlotsView.as_view(), name='widget_time_slots'),
    path('widgets/dispense/quote', widgets.DispenseQuoteView.as_view(), name='widget_dispense_quote'),

    path('healthz', health.healthz, name='healthz'),
]
