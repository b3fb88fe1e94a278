from django.shortcuts import redirect, render
from django.urls import reverse

from clinic.forms.fields import choices_from
from clinic.forms.gallery import GalleryImageForm
from clinic.permissions import permission_required
from clinic.services.api import record, rows
from clinic.services.listing import Action, Column, lookup

from .common import fetch, list_params, render_table, submit

COLUMNS = [
    Column('image', 'Image', kind='image', render=lambda g: g.get('image_url') or g.get('image')),
    Column('title', 'Title'),
    Column('category', 'Category', render=lambda g: lookup(g, 'category.name') or '-'),
    Column('status', 'Status', kind='status'),
    Column('created_at', 'Added', kind='date'),
]


def row_actions(image):
    pk = image.get('id')
    return [
        Action('Edit', reverse('clinic:gallery_edit', args=[pk])),
        Action('Delete', reverse('clinic:gallery_delete', args=[pk]), 'red'),
    ]


def _categories(request):
    return choices_from(rows(fetch(request, request.api.get_gallery_categories, default=[],
                                   message='Failed to load gallery categories')))


def _fields_and_files(form):
    data = dict(form.cleaned_data)
    image = data.pop('image', None)
    files = {'image': (image.name, image.read(), getattr(image, 'content_type', None))} if image else None
    return data, files


@permission_required('view-gallery')
def gallery_list(request):
    params = list_params(request, allowed=('search', 'status', 'category_id'))
    response = fetch(request, request.api.get_gallery_images, params, default=[], message='Failed to load gallery')
    return render_table(request, title='Gallery', columns=COLUMNS, response=response, params=params,
                        actions=row_actions, create_url=reverse('clinic:gallery_create'),
                        category_choices=_categories(request))


@permission_required('view-gallery')
def gallery_create(request):
    form = GalleryImageForm(request.POST or None, request.FILES or None,
                            categories=_categories(request), require_image=True)
    if request.method == 'POST' and form.is_valid():
        fields, files = _fields_and_files(form)
        if submit(request, request.api.create_gallery_image, fields, files,
                  success='Image uploaded successfully', message='Failed to upload image'):
            return redirect('clinic:gallery')
    return render(request, 'clinic/dashboard/form.html', {
        'title': 'Add image', 'form': form, 'multipart': True, 'cancel_url': reverse('clinic:gallery'),
    })


@permission_required('view-gallery')
def gallery_edit(request, pk):
    image = record(fetch(request, request.api.get_gallery_image, pk, default={}, message='Failed to load image'))
    if not image:
        return redirect('clinic:gallery')
    initial = {
        'title': image.get('title'),
        'category_id': image.get('category_id') or lookup(image, 'category.id'),
        'description': image.get('description'),
        'status': image.get('status') or 'active',
    }
    form = GalleryImageForm(request.POST or None, request.FILES or None, initial=initial,
                            categories=_categories(request))
    if request.method == 'POST' and form.is_valid():
        fields, files = _fields_and_files(form)
        if submit(request, request.api.update_gallery_image, pk, fields, files,
                  success='Image updated successfully', message='Failed to update image'):
            return redirect('clinic:gallery')
    return render(request, 'clinic/dashboard/form.html', {
        'title': f"Edit {image.get('title') or 'image'}", 'form': form, 'multipart': True,
        'preview': image.get('image_url') or image.get('image'), 'cancel_url': reverse('clinic:gallery'),
    })


@permission_required('view-gallery')
def gallery_delete(request, pk):
    if request.method == 'POST':
        submit(request, request.api.delete_gallery_image, pk,
               success='Image deleted successfully', message='Failed to delete image')
        return redirect('clinic:gallery')
    return render(request, 'clinic/dashboard/confirm_delete.html', {
        'title': 'Delete image', 'subject': f'image #{pk}', 'cancel_url': reverse('clinic:gallery'),
    })
