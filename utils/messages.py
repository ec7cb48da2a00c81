"""
Centralized Spanish API messages.
All user-facing text in Spanish for consistency.
"""

MESSAGES = {
    # Success messages
    'reservation_created': 'Solicitud de reserva creada exitosamente',
    'reservation_approved': 'Reserva aprobada',
    'reservation_rejected': 'Reserva rechazada',
    'reservation_checked_in': 'Check-in registrado',
    'reservation_checked_out': 'Check-out registrado',
    'modification_requested': 'Solicitud de modificación enviada',
    'modification_approved': 'Solicitud de modificación aprobada',
    'modification_rejected': 'Solicitud de modificación rechazada',
    'cancellation_requested': 'Solicitud de cancelación enviada',
    'cancellation_approved': 'Solicitud de cancelación aprobada',
    'cancellation_rejected': 'Solicitud de cancelación rechazada',
    'extras_added': 'Extras añadidos a la reserva',
    'review_created': 'Valoración registrada',
    'cabana_updated': 'Cabana actualizada correctamente',
    'price_saved': 'Precio guardado correctamente',
    'price_deleted': 'Precio eliminado',
    'notification_read': 'Notificación marcada como leída',

    # Error messages
    'login_required': 'Autenticación requerida',
    'permission_denied': 'No tiene permisos para esta acción',
    'not_owner': 'Solo el solicitante de la reserva puede realizar esta acción',
    'validation_failed': 'Datos inválidos',
    'invalid_json': 'Se esperaba un cuerpo JSON',
    'reservation_not_found': 'Reserva no encontrada',
    'cabana_not_found': 'Cabana no encontrada',
    'concept_not_found': 'Concepto no encontrado',
    'product_not_found': 'Producto no encontrado',
    'guest_not_found': 'Huésped no encontrado',
    'request_not_found': 'Solicitud no encontrada',
    'price_range_not_found': 'Rango de precios no encontrado',
    'notification_not_found': 'Notificación no encontrada',
    'cabana_unavailable': 'La cabana no está disponible para las fechas seleccionadas',
    'cabana_closed': 'La cabana no está abierta para reservas',
    'invalid_state': 'La reserva no está en un estado válido para esta acción (estado actual: {status})',
    'request_already_resolved': 'La solicitud ya fue resuelta',
    'review_exists': 'Esta reserva ya tiene una valoración',
    'database_busy': 'El sistema está ocupado, inténtelo de nuevo',
    'internal_error': 'Error interno del servidor',

    # Validation messages
    'field_required': 'Este campo es requerido',
    'invalid_value': 'Valor inválido',
    'invalid_date': 'Formato de fecha inválido (AAAA-MM-DD)',
    'invalid_date_range': 'La fecha de fin debe ser posterior a la fecha de inicio',
    'date_in_past': 'La fecha de inicio no puede estar en el pasado',
    'guest_name_too_short': 'El nombre del huésped debe tener al menos 2 caracteres',
    'reason_required': 'Debe indicar un motivo',
    'no_changes_requested': 'Debe indicar al menos un cambio',
    'invalid_price': 'El precio debe ser un número mayor o igual a 0',
    'invalid_quantity': 'La cantidad debe ser un entero positivo',
    'invalid_rating': 'La valoración debe estar entre 1 y 5',
    'product_inactive': 'El producto no está activo',
    'extras_required': 'Debe indicar al menos un producto',
    'invalid_action': 'Acción inválida (approve o reject)',
    'invalid_status': 'Estado inválido',

    # Notification titles
    'notif_new_request': 'Nueva solicitud de reserva',
    'notif_approved': 'Reserva aprobada',
    'notif_rejected': 'Reserva rechazada',
    'notif_modification_request': 'Nueva solicitud de modificación',
    'notif_cancellation_request': 'Nueva solicitud de cancelación',
    'notif_status_changed': 'Estado de reserva actualizado',
    'notif_cancelled': 'Reserva cancelada',
    'notif_extra_added': 'Extras añadidos',
    'notif_check_in': 'Check-in realizado',
    'notif_check_out': 'Check-out realizado',
}


def get_message(key: str, **kwargs) -> str:
    """
    Get message with optional formatting.

    Args:
        key: Message key
        **kwargs: Format parameters

    Returns:
        Formatted message or key if not found
    """
    message = MESSAGES.get(key, key)
    if kwargs:
        return message.format(**kwargs)
    return message
