from django.contrib import admin
from django.contrib.auth import get_user_model
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django import forms

from base.models import Membership, Team, TeamInvitation

User = get_user_model()


class UserCreationForm(forms.ModelForm):
    """Custom form for creating new users in the admin panel."""
    password1 = forms.CharField(label="Password", widget=forms.PasswordInput)
    password2 = forms.CharField(label="Confirm Password", widget=forms.PasswordInput)

    class Meta:
        model = User
        fields = ('email', 'username', 'first_name', 'last_name')

    def clean_password2(self):
        password1 = self.cleaned_data.get("password1")
        password2 = self.cleaned_data.get("password2")
        if password1 and password2 and password1 != password2:
            raise forms.ValidationError("Passwords do not match")
        return password2

    def save(self, commit=True):
        user = super().save(commit=False)
        user.set_password(self.cleaned_data["password1"])
        if commit:
            user.save()
        return user


class UserChangeForm(forms.ModelForm):

    class Meta:
        model = User
        fields = ('email', 'username', 'first_name', 'last_name', 'is_active', 'is_staff', 'current_team')


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    form = UserChangeForm
    add_form = UserCreationForm

    list_display = ('email', 'username', 'current_team', 'is_active', 'is_staff')
    search_fields = ('email', 'username')
    ordering = ('email',)
    raw_id_fields = ('current_team',)

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Personal Info', {'fields': ('first_name', 'username', 'last_name')}),
        ('Teams', {'fields': ('current_team',)}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'username', 'first_name', 'last_name', 'password1', 'password2')}
        ),
    )


class MembershipInline(admin.TabularInline):
    model = Membership
    extra = 0
    raw_id_fields = ('user',)
    readonly_fields = ('created_at',)


class TeamInvitationInline(admin.TabularInline):
    model = TeamInvitation
    extra = 0
    raw_id_fields = ('invited_by',)
    readonly_fields = ('created_at',)


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    """Admin interface for Team model."""
    list_display = ['name', 'owner', 'member_count', 'created_at']
    list_filter = ['created_at']
    search_fields = ['name', 'owner__email']
    raw_id_fields = ['owner']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [MembershipInline, TeamInvitationInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'owner')
        }),
        ('System Information', {
            'fields': ('id', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(TeamInvitation)
class TeamInvitationAdmin(admin.ModelAdmin):
    list_display = ['email', 'team', 'invited_by', 'created_at']
    search_fields = ['email', 'team__name']
    readonly_fields = ['id', 'created_at']
    ordering = ['-created_at']
