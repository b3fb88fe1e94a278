"""Public marketing and booking site."""
from django.shortcuts import redirect, render

from clinic.forms.fields import choices_from
from clinic.forms.public import BookingForm, ReviewForm, SubscribeForm
from clinic.serializers.calendar import CalendarQuerySerializer
from clinic.services import site_cache
from clinic.services.api import pagination, record, rows
from clinic.services.calendar import local_today, month_context, parse_date
from clinic.services.listing import page_numbers

from .common import doctor_choices, fetch, submit

FEATURED_DOCTORS = 6


def _cached(request, key, loader, message):
    return fetch(request, site_cache.cached, key, loader, default=[], message=message)


def _int_or_none(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def home(request):
    api = request.public_api
    departments = rows(_cached(request, site_cache.departments_key(), api.get_departments,
                               'Failed to load departments'))
    doctors = rows(_cached(request, site_cache.doctors_key(), api.get_doctors, 'Failed to load doctors'))
    plans = rows(_cached(request, site_cache.plans_key(), api.get_plans, 'Failed to load plans'))
    return render(request, 'clinic/site/home.html', {
        'departments': departments,
        'doctors': doctors[:FEATURED_DOCTORS],
        'plans': plans,
    })


def doctors(request):
    api = request.public_api
    page = _int_or_none(request.GET.get('page')) or 1
    department_id = _int_or_none(request.GET.get('department'))
    filters = {'department_id': department_id} if department_id else None
    response = _cached(request, site_cache.doctors_key(page, department_id),
                       lambda: api.get_doctors(page, 12, filters), 'Failed to load doctors')
    departments = rows(_cached(request, site_cache.departments_key(), api.get_departments,
                               'Failed to load departments'))
    paging = pagination(response, page, 12)
    return render(request, 'clinic/site/doctors.html', {
        'doctors': rows(response),
        'departments': departments,
        'department_id': department_id,
        'pagination': paging,
        'page_numbers': page_numbers(paging['current_page'], paging['last_page']),
        'querystring': f'department={department_id}' if department_id else '',
    })


def doctor_profile(request, pk):
    api = request.public_api
    doctor = record(fetch(request, api.get_doctor_profile, pk, default={}, message='Failed to load doctor profile'))
    if not doctor:
        return redirect('clinic:site_doctors')
    reviews = rows(fetch(request, api.get_doctor_reviews, pk, default=[], message='Failed to load reviews'))
    form = ReviewForm(request.POST or None)
    if request.method == 'POST' and form.is_valid():
        payload = {'doctor_id': pk, **form.cleaned_data}
        if submit(request, api.submit_review, payload,
                  success='Thank you! Your review has been submitted', message='Failed to submit review'):
            return redirect('clinic:site_doctor', pk)
    ratings = [int(r.get('rating') or 0) for r in reviews if r.get('rating')]
    return render(request, 'clinic/site/doctor.html', {
        'doctor': doctor,
        'reviews': reviews,
        'average_rating': round(sum(ratings) / len(ratings), 1) if ratings else None,
        'form': form,
    })


def gallery(request):
    api = request.public_api
    category_id = _int_or_none(request.GET.get('category'))
    params = {'category_id': category_id} if category_id else None
    images = rows(_cached(request, site_cache.gallery_key(category_id), lambda: api.get_galleries(params),
                          'Failed to load gallery'))
    categories = rows(_cached(request, site_cache.gallery_categories_key(), api.get_gallery_categories,
                              'Failed to load gallery categories'))
    return render(request, 'clinic/site/gallery.html', {
        'images': images, 'categories': categories, 'category_id': category_id,
    })


def plans(request):
    response = _cached(request, site_cache.plans_key(), request.public_api.get_plans, 'Failed to load plans')
    return render(request, 'clinic/site/plans.html', {'plans': rows(response)})


def plan_detail(request, pk):
    api = request.public_api
    plan = record(fetch(request, api.get_plan, pk, default={}, message='Failed to load plan'))
    if not plan:
        return redirect('clinic:site_plans')
    form = SubscribeForm(request.POST or None)
    if request.method == 'POST' and form.is_valid():
        payload = {'subscription_package_id': pk, **form.cleaned_data}
        if submit(request, api.subscribe, payload,
                  success=f"You have subscribed to {plan.get('name') or 'the plan'}",
                  message='Failed to subscribe'):
            return redirect('clinic:site_plans')
    features = plan.get('features') or []
    if isinstance(features, str):
        features = [f.strip() for f in features.split(',') if f.strip()]
    return render(request, 'clinic/site/plan.html', {'plan': plan, 'features': features, 'form': form})


def booking(request):
    """Calendar plus booking form.  Picking a day sets ``?date=``; past days cannot be picked."""
    api = request.public_api
    today = local_today()
    query = CalendarQuerySerializer(data={'year': request.GET.get('year', today.year),
                                          'month': request.GET.get('month', today.month)})
    year, month = ((query.validated_data['year'], query.validated_data['month'])
                   if query.is_valid() else (today.year, today.month))

    selected = parse_date(request.GET.get('date'))
    if selected and selected < today:
        selected = None
    doctor_id = _int_or_none(request.GET.get('doctor'))

    doctors_ = rows(_cached(request, site_cache.doctors_key(), api.get_doctors, 'Failed to load doctors'))
    departments = rows(_cached(request, site_cache.departments_key(), api.get_departments,
                               'Failed to load departments'))
    form = BookingForm(request.POST or None,
                       initial={'appointment_date': selected, 'doctor_id': doctor_id},
                       doctors=doctor_choices(doctors_), departments=choices_from(departments))
    if request.method == 'POST' and form.is_valid():
        if submit(request, api.book_appointment, form.payload(),
                  success='Appointment booked successfully! We will contact you shortly',
                  message='Failed to book appointment'):
            return redirect('clinic:site_booking')

    slots = []
    if doctor_id and selected:
        slots = rows(fetch(request, api.get_available_time_slots, doctor_id, selected.isoformat(), default=[],
                           message='Failed to load available time slots'))
    context = month_context(year, month, today)
    context.update({
        'form': form,
        'selected': selected.isoformat() if selected else '',
        'doctor_id': doctor_id or '',
        'slots': slots,
        'month_query': f'&doctor={doctor_id}' if doctor_id else '',
        'day_url': f'?doctor={doctor_id}&date=' if doctor_id else '?date=',
    })
    return render(request, 'clinic/site/booking.html', context)
