import math

from django.core.paginator import Paginator, EmptyPage


def paginer(elements, page_number=1, page_size=10):
    """
    Page d'une liste ou d'un queryset, au format des listes paginées du front.

    Une page au-delà de la dernière renvoie une liste vide (pas d'erreur).
    """
    page_number = max(int(page_number or 1), 1)
    page_size = max(int(page_size or 1), 1)

    paginator = Paginator(elements, page_size)
    total_count = paginator.count
    total_pages = math.ceil(total_count / page_size)
    try:
        items = list(paginator.page(page_number).object_list) if total_count else []
    except EmptyPage:
        items = []

    return {
        'items': items,
        'page_number': page_number,
        'total_pages': total_pages,
        'total_count': total_count,
        'has_previous_page': page_number > 1,
        'has_next_page': page_number < total_pages,
    }
